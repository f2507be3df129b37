"""Pydantic models for Rental Market."""

from rental_market.models.identity import (
    Identity,
    Profile,
    ProfileCreate,
    ProfileUpdate,
    Role,
    SessionChange,
    SessionEvent,
    SignInRequest,
    SignUpRequest,
)
from rental_market.models.listing import (
    Dashboard,
    DashboardStats,
    Listing,
    ListingCreate,
    PropertyType,
    SearchFilters,
)
from rental_market.models.session import SessionSnapshot, SessionStatus

__all__ = [
    "Dashboard",
    "DashboardStats",
    "Identity",
    "Listing",
    "ListingCreate",
    "Profile",
    "ProfileCreate",
    "ProfileUpdate",
    "PropertyType",
    "Role",
    "SearchFilters",
    "SessionChange",
    "SessionEvent",
    "SessionSnapshot",
    "SessionStatus",
    "SignInRequest",
    "SignUpRequest",
]
