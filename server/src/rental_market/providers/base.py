"""Contracts for the hosted identity provider and profile store."""

from typing import Any, Callable, Protocol

from rental_market.models.identity import Identity, Profile, ProfileCreate, SessionChange

SessionChangeCallback = Callable[[SessionChange], None]
Unsubscribe = Callable[[], None]


class IdentityProvider(Protocol):
    """Issues and invalidates identities.

    Implementations raise errors from ``rental_market.exceptions`` only.
    """

    async def authenticate(self, email: str, password: str) -> Identity:
        """Sign in with email and password.

        Raises:
            InvalidCredentialsError: The pair was rejected
            NetworkError: The provider could not be reached
        """
        ...

    async def register(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any],
    ) -> Identity:
        """Create an identity and open a session for it.

        Raises:
            EmailAlreadyRegisteredError: The email is taken
            WeakPasswordError: The password was refused
            EmailConfirmationRequiredError: Created, but no session until confirmed
        """
        ...

    async def invalidate(self) -> None:
        """End the current remote session.

        Raises:
            SignOutError: The session could not be invalidated
        """
        ...

    async def current_session(self) -> Identity | None:
        """Return the identity of a still-valid stored session, if any."""
        ...

    def on_session_change(self, callback: SessionChangeCallback) -> Unsubscribe:
        """Register a callback for session changes.

        The callback is invoked on the event loop that registered it.
        """
        ...


class ProfileStore(Protocol):
    """Keyed store of user profiles (one row per identity id)."""

    async def get(self, user_id: str) -> Profile:
        """Fetch a profile.

        Raises:
            ProfileNotFoundError: No row for this id
        """
        ...

    async def insert(self, profile: ProfileCreate) -> Profile:
        """Insert a profile and return the stored row.

        Raises:
            RecordConflictError: A row with this id exists
            RecordValidationError: The row was rejected
        """
        ...

    async def update(self, user_id: str, fields: dict[str, Any]) -> Profile:
        """Apply a partial update and return the stored row.

        Raises:
            UpdateRejectedError: The store refused the update
        """
        ...
