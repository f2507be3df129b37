"""Database access for Rental Market."""

from rental_market.db.client import ListingStore, create_supabase_client

__all__ = ["ListingStore", "create_supabase_client"]
