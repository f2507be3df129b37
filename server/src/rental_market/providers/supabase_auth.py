"""Supabase Auth adapter for the IdentityProvider contract."""

import asyncio
import logging
from typing import Any

from supabase import Client

from rental_market.exceptions import (
    BackendError,
    EmailConfirmationRequiredError,
    InvalidCredentialsError,
    SignOutError,
)
from rental_market.models.identity import Identity, SessionChange, SessionEvent
from rental_market.providers.base import SessionChangeCallback, Unsubscribe
from rental_market.providers.errors import classify_auth_error, error_message

logger = logging.getLogger(__name__)


def identity_from_session(session: Any) -> Identity | None:
    """Build an Identity from a gotrue Session (or None)."""
    if session is None or getattr(session, "user", None) is None:
        return None
    return Identity(
        id=str(session.user.id),
        email=session.user.email,
        access_token=session.access_token,
    )


class SupabaseIdentityProvider:
    """IdentityProvider backed by ``client.auth`` (gotrue)."""

    def __init__(self, client: Client) -> None:
        self._client = client

    async def authenticate(self, email: str, password: str) -> Identity:
        """Sign in with email and password.

        Args:
            email: Account email
            password: Account password

        Returns:
            The signed-in identity
        """
        try:
            response = self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise classify_auth_error(e) from e

        identity = identity_from_session(response.session)
        if identity is None:
            raise InvalidCredentialsError()
        logger.debug(f"Authenticated identity {identity.id}")
        return identity

    async def register(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any],
    ) -> Identity:
        """Create an identity, attaching ``metadata`` as user data.

        Args:
            email: Account email
            password: Account password
            metadata: Stored on the auth user (name, phone, role)

        Returns:
            The new identity with an open session
        """
        try:
            response = self._client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata},
            })
        except Exception as e:
            raise classify_auth_error(e) from e

        if response.user is None:
            raise BackendError("Sign up returned no user")
        if response.session is None:
            # Project requires email confirmation before a session is issued
            raise EmailConfirmationRequiredError()

        identity = identity_from_session(response.session)
        logger.debug(f"Registered identity {identity.id}")
        return identity

    async def invalidate(self) -> None:
        """Sign out of the current remote session."""
        try:
            self._client.auth.sign_out()
        except Exception as e:
            raise SignOutError(error_message(e)) from e

    async def current_session(self) -> Identity | None:
        """Return the identity for a stored, still-valid session."""
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            raise classify_auth_error(e) from e
        return identity_from_session(session)

    def on_session_change(self, callback: SessionChangeCallback) -> Unsubscribe:
        """Forward gotrue auth state changes to ``callback``.

        gotrue fires some events (token refresh) from a timer thread, so
        every event is handed back to the registering loop.

        Args:
            callback: Receives a SessionChange on the event loop

        Returns:
            Function that removes the subscription
        """
        loop = asyncio.get_running_loop()

        def _listener(event: str, session: Any) -> None:
            try:
                kind = SessionEvent(event)
            except ValueError:
                logger.debug(f"Ignoring unsupported auth event {event}")
                return
            change = SessionChange(event=kind, identity=identity_from_session(session))
            loop.call_soon_threadsafe(callback, change)

        subscription = self._client.auth.on_auth_state_change(_listener)
        return subscription.unsubscribe
