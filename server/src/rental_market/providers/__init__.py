"""Identity provider and profile store adapters."""

from rental_market.providers.base import IdentityProvider, ProfileStore
from rental_market.providers.supabase_auth import SupabaseIdentityProvider
from rental_market.providers.supabase_profiles import SupabaseProfileStore

__all__ = [
    "IdentityProvider",
    "ProfileStore",
    "SupabaseIdentityProvider",
    "SupabaseProfileStore",
]
