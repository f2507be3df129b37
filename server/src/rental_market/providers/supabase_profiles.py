"""Supabase table adapter for the ProfileStore contract."""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from rental_market.exceptions import (
    BackendError,
    NetworkError,
    ProfileNotFoundError,
    UpdateRejectedError,
)
from rental_market.models.identity import Profile, ProfileCreate
from rental_market.providers.errors import classify_store_error

logger = logging.getLogger(__name__)


class SupabaseProfileStore:
    """ProfileStore over the ``users`` table."""

    def __init__(self, client: Client, table: str = "users") -> None:
        self._client = client
        self._table = table

    async def get(self, user_id: str) -> Profile:
        """Fetch the profile row for an identity.

        Args:
            user_id: The identity id

        Returns:
            The profile
        """
        try:
            result = (
                self._client.table(self._table)
                .select("*")
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            raise classify_store_error(e) from e

        if not result.data:
            raise ProfileNotFoundError(f"No profile for user {user_id}")
        return _to_profile(result.data[0])

    async def insert(self, profile: ProfileCreate) -> Profile:
        """Insert a new profile row.

        Args:
            profile: The row to insert

        Returns:
            The stored row as returned by the database
        """
        try:
            result = (
                self._client.table(self._table)
                .insert(profile.model_dump(mode="json", exclude_none=True))
                .execute()
            )
        except Exception as e:
            raise classify_store_error(e) from e

        if not result.data:
            raise BackendError("Profile insert returned no row")
        logger.debug(f"Inserted profile {profile.id}")
        return _to_profile(result.data[0])

    async def update(self, user_id: str, fields: dict[str, Any]) -> Profile:
        """Apply a partial update to a profile row.

        Args:
            user_id: The identity id
            fields: Only the columns that changed

        Returns:
            The stored row as returned by the database
        """
        try:
            result = (
                self._client.table(self._table)
                .update(fields)
                .eq("id", user_id)
                .execute()
            )
        except Exception as e:
            error = classify_store_error(e)
            if isinstance(error, NetworkError):
                raise error from e
            raise UpdateRejectedError(error.message) from e

        if not result.data:
            # Row level security filters the row out instead of failing
            raise UpdateRejectedError(f"Profile {user_id} could not be updated")
        logger.debug(f"Updated profile {user_id}: {sorted(fields)}")
        return _to_profile(result.data[0])


def _to_profile(row: dict[str, Any]) -> Profile:
    """Parse a stored row, treating a malformed one as a backend failure."""
    try:
        return Profile(**row)
    except PydanticValidationError as e:
        logger.warning(f"Malformed profile row {row.get('id')}: {e.error_count()} errors")
        raise BackendError(f"Stored profile {row.get('id')} is malformed") from e
