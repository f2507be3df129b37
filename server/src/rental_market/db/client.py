"""Supabase client construction and listing table operations."""

import logging
from typing import Any

from supabase import Client, create_client

from rental_market.config import Settings, get_settings
from rental_market.exceptions import RecordConflictError
from rental_market.models.listing import (
    Dashboard,
    DashboardStats,
    Listing,
    ListingCreate,
    SearchFilters,
)
from rental_market.providers.errors import classify_store_error

logger = logging.getLogger(__name__)


def create_supabase_client(settings: Settings | None = None) -> Client:
    """Create the Supabase client shared by auth and table access.

    Sharing one client means table queries run with the signed-in user's
    JWT, so row level security applies.
    """
    settings = settings or get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


def _execute(query: Any) -> Any:
    """Run a PostgREST query, classifying any failure."""
    try:
        return query.execute()
    except Exception as e:
        raise classify_store_error(e) from e


class ListingStore:
    """CRUD over listings, saved listings and message counts."""

    def __init__(self, client: Client, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.client = client
        self._listings = settings.listings_table
        self._saved = settings.saved_listings_table
        self._messages = settings.messages_table
        # Embed the owner through the listings.user_id foreign key
        self._with_owner = f"*, user:{settings.profiles_table}(*)"

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    async def search_listings(
        self,
        filters: SearchFilters,
        limit: int = 50,
    ) -> list[Listing]:
        """Search listings, newest first.

        Args:
            filters: Location substring, bedroom minimum, price range, type
            limit: Maximum rows to return

        Returns:
            Matching listings
        """
        query = (
            self.client.table(self._listings)
            .select(self._with_owner)
            .order("created_at", desc=True)
        )
        if filters.location:
            query = query.ilike("location", f"%{filters.location}%")
        if filters.bedrooms:
            query = query.gte("bedrooms", filters.bedrooms)
        if filters.min_price:
            query = query.gte("price", filters.min_price)
        if filters.max_price:
            query = query.lte("price", filters.max_price)
        if filters.property_type:
            query = query.eq("property_type", filters.property_type.value)

        result = _execute(query.limit(limit))
        return [Listing(**row) for row in result.data]

    async def get_listing(self, listing_id: str) -> Listing | None:
        """Get a listing by ID, or None if it does not exist."""
        result = _execute(
            self.client.table(self._listings).select(self._with_owner).eq("id", listing_id)
        )
        if result.data:
            return Listing(**result.data[0])
        return None

    async def create_listing(self, user_id: str, data: ListingCreate) -> Listing:
        """Create a listing owned by ``user_id``.

        Args:
            user_id: The agent's identity id
            data: The wizard payload

        Returns:
            The stored listing
        """
        row = {"user_id": user_id, **data.model_dump(mode="json", exclude_none=True)}
        result = _execute(self.client.table(self._listings).insert(row))
        listing = Listing(**result.data[0])
        logger.info(f"Created listing {listing.id} for {user_id}")
        return listing

    async def list_agent_listings(self, user_id: str) -> list[Listing]:
        """All listings owned by an agent, newest first."""
        result = _execute(
            self.client.table(self._listings)
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
        )
        return [Listing(**row) for row in result.data]

    async def get_dashboard(self, user_id: str) -> Dashboard:
        """Listings and counters for the agent dashboard.

        Args:
            user_id: The agent's identity id
        """
        listings = await self.list_agent_listings(user_id)

        messages = _execute(
            self.client.table(self._messages)
            .select("id", count="exact")
            .eq("to_user_id", user_id)
        )

        stats = DashboardStats(
            total_listings=len(listings),
            active_listings=len(listings),
            total_messages=messages.count or 0,
        )
        return Dashboard(listings=listings, stats=stats)

    # -------------------------------------------------------------------------
    # Saved listings
    # -------------------------------------------------------------------------

    async def saved_listing_ids(self, user_id: str) -> set[str]:
        """IDs of the listings a renter has saved."""
        result = _execute(
            self.client.table(self._saved)
            .select("listing_id")
            .eq("user_id", user_id)
        )
        return {str(row["listing_id"]) for row in result.data}

    async def save_listing(self, user_id: str, listing_id: str) -> None:
        """Save a listing for a renter. Saving twice is a no-op."""
        try:
            _execute(
                self.client.table(self._saved)
                .insert({"user_id": user_id, "listing_id": listing_id})
            )
        except RecordConflictError:
            logger.debug(f"Listing {listing_id} already saved by {user_id}")

    async def unsave_listing(self, user_id: str, listing_id: str) -> None:
        """Remove a saved listing. Idempotent."""
        _execute(
            self.client.table(self._saved)
            .delete()
            .eq("user_id", user_id)
            .eq("listing_id", listing_id)
        )
