"""Listing models (browse page, dashboard and add-listing wizard)."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from rental_market.models.identity import Profile


class PropertyType(str, Enum):
    """Kinds of property an agent can list."""

    APARTMENT = "apartment"
    HOUSE = "house"
    VILLA = "villa"
    CONDOMINIUM = "condominium"
    OFFICE = "office"
    SHOP = "shop"
    WAREHOUSE = "warehouse"
    STUDIO = "studio"


class Listing(BaseModel):
    """A rental listing row."""

    id: str
    user_id: str
    title: str
    description: str = ""
    location: str
    subcity: str | None = None
    price: float
    bedrooms: int
    bathrooms: int | None = None
    area_sqm: float | None = None
    property_type: PropertyType = PropertyType.APARTMENT
    features: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    # Owning agent, embedded by listing reads for the contact card
    user: Profile | None = None


class ListingCreate(BaseModel):
    """Payload submitted by the add-listing wizard."""

    title: str = Field(min_length=1)
    description: str = ""
    location: str = Field(min_length=1)
    subcity: str | None = None
    price: float = Field(gt=0)
    bedrooms: int = Field(ge=0)
    bathrooms: int | None = Field(default=None, ge=0)
    area_sqm: float | None = Field(default=None, gt=0)
    property_type: PropertyType = PropertyType.APARTMENT
    features: list[str] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)


class SearchFilters(BaseModel):
    """Filters applied to the listings query."""

    location: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    bedrooms: int | None = Field(default=None, ge=0)
    property_type: PropertyType | None = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class DashboardStats(BaseModel):
    """Counters shown on the agent dashboard."""

    total_listings: int = 0
    active_listings: int = 0
    total_messages: int = 0


class Dashboard(BaseModel):
    """Agent dashboard payload."""

    listings: list[Listing] = Field(default_factory=list)
    stats: DashboardStats = Field(default_factory=DashboardStats)
