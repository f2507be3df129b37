"""Dependency providers for the API."""

import logging
from typing import Annotated

from fastapi import Depends
from supabase import Client

from rental_market.config import get_settings
from rental_market.db.client import ListingStore, create_supabase_client
from rental_market.models.identity import Role
from rental_market.models.session import SessionSnapshot
from rental_market.providers.supabase_auth import SupabaseIdentityProvider
from rental_market.providers.supabase_profiles import SupabaseProfileStore
from rental_market.session.manager import SessionManager

logger = logging.getLogger(__name__)

_client: Client | None = None
_session_manager: SessionManager | None = None
_listing_store: ListingStore | None = None


def get_supabase_client() -> Client:
    """Get or create the shared Supabase client."""
    global _client
    if _client is None:
        _client = create_supabase_client()
    return _client


def get_session_manager() -> SessionManager:
    """Get or create the process-wide session manager."""
    global _session_manager
    if _session_manager is None:
        settings = get_settings()
        client = get_supabase_client()
        _session_manager = SessionManager(
            identity=SupabaseIdentityProvider(client),
            profiles=SupabaseProfileStore(client, table=settings.profiles_table),
        )
    return _session_manager


def get_listing_store() -> ListingStore:
    """Get or create the listing store."""
    global _listing_store
    if _listing_store is None:
        _listing_store = ListingStore(get_supabase_client())
    return _listing_store


def reset_dependencies() -> None:
    """Drop cached instances (used on shutdown and in tests)."""
    global _client, _session_manager, _listing_store
    _client = None
    _session_manager = None
    _listing_store = None


Manager = Annotated[SessionManager, Depends(get_session_manager)]
Listings = Annotated[ListingStore, Depends(get_listing_store)]


def current_user(manager: Manager) -> SessionSnapshot:
    """Snapshot of the signed-in user (401 otherwise)."""
    return manager.require_user()


def current_agent(manager: Manager) -> SessionSnapshot:
    """Snapshot of the signed-in agent (401/403 otherwise)."""
    return manager.require_user(Role.AGENT)


def current_renter(manager: Manager) -> SessionSnapshot:
    """Snapshot of the signed-in renter (401/403 otherwise)."""
    return manager.require_user(Role.RENTER)


User = Annotated[SessionSnapshot, Depends(current_user)]
Agent = Annotated[SessionSnapshot, Depends(current_agent)]
Renter = Annotated[SessionSnapshot, Depends(current_renter)]
