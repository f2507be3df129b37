"""Global test configuration for Rental Market."""

import asyncio
import os
from typing import Any

import pytest

from rental_market.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    ProfileNotFoundError,
    RecordConflictError,
)
from rental_market.models.identity import (
    Identity,
    Profile,
    ProfileCreate,
    Role,
    SessionChange,
    SessionEvent,
)
from rental_market.session.manager import SessionManager


@pytest.fixture(autouse=True, scope="session")
def _set_test_env_vars():
    """Set dummy environment variables for Settings validation.

    This ensures tests don't require a real .env file or exported env vars.
    Only sets values that aren't already present, so real env vars take
    precedence (useful for integration tests).
    """
    defaults = {
        "SUPABASE_URL": "https://test.supabase.co",
        "SUPABASE_KEY": "test-supabase-key",
    }
    originals = {}
    for key, value in defaults.items():
        if key not in os.environ:
            os.environ[key] = value
            originals[key] = None
        else:
            originals[key] = os.environ[key]

    # Clear the lru_cache on get_settings so it picks up the new env vars
    from rental_market.config import get_settings
    get_settings.cache_clear()

    yield

    # Restore original env state
    for key, original in originals.items():
        if original is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = original
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeIdentityProvider:
    """In-memory identity provider.

    Never emits events on its own; tests call ``emit`` explicitly.
    Set ``authenticate_gate`` to an asyncio.Event to hold authenticate()
    until the test releases it.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, tuple[str, Identity]] = {}
        self.metadata: dict[str, dict[str, Any]] = {}
        self.session: Identity | None = None
        self.callbacks: list = []
        self.calls: list[str] = []

        self.authenticate_error: Exception | None = None
        self.register_error: Exception | None = None
        self.invalidate_error: Exception | None = None
        self.authenticate_gate: asyncio.Event | None = None

    def add_account(self, email: str, password: str, user_id: str | None = None) -> Identity:
        identity = Identity(
            id=user_id or f"user-{len(self.accounts) + 1}",
            email=email,
            access_token=f"token-{email}",
        )
        self.accounts[email] = (password, identity)
        return identity

    async def authenticate(self, email: str, password: str) -> Identity:
        self.calls.append("authenticate")
        if self.authenticate_gate is not None:
            await self.authenticate_gate.wait()
        if self.authenticate_error is not None:
            raise self.authenticate_error
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise InvalidCredentialsError()
        self.session = account[1]
        return account[1]

    async def register(self, email: str, password: str, metadata: dict[str, Any]) -> Identity:
        self.calls.append("register")
        if self.register_error is not None:
            raise self.register_error
        if email in self.accounts:
            raise EmailAlreadyRegisteredError()
        identity = self.add_account(email, password)
        self.metadata[identity.id] = metadata
        self.session = identity
        return identity

    async def invalidate(self) -> None:
        self.calls.append("invalidate")
        if self.invalidate_error is not None:
            raise self.invalidate_error
        self.session = None

    async def current_session(self) -> Identity | None:
        self.calls.append("current_session")
        return self.session

    def on_session_change(self, callback):
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def emit(self, event: SessionEvent, identity: Identity | None = None) -> None:
        for callback in list(self.callbacks):
            callback(SessionChange(event=event, identity=identity))


class FakeProfileStore:
    """In-memory profile table. Trims strings on update like the database does."""

    def __init__(self) -> None:
        self.rows: dict[str, Profile] = {}
        self.calls: list[tuple] = []

        self.get_error: Exception | None = None
        self.insert_error: Exception | None = None
        self.update_error: Exception | None = None
        self.get_gates: dict[str, asyncio.Event] = {}

    def add_profile(self, user_id: str, role: Role = Role.RENTER, name: str = "Abebe",
                    phone: str = "+251911111111") -> Profile:
        profile = Profile(id=user_id, role=role, name=name, phone=phone)
        self.rows[user_id] = profile
        return profile

    async def get(self, user_id: str) -> Profile:
        self.calls.append(("get", user_id))
        gate = self.get_gates.get(user_id)
        if gate is not None:
            await gate.wait()
        if self.get_error is not None:
            raise self.get_error
        if user_id not in self.rows:
            raise ProfileNotFoundError(f"No profile for user {user_id}")
        return self.rows[user_id]

    async def insert(self, profile: ProfileCreate) -> Profile:
        self.calls.append(("insert", profile.id))
        if self.insert_error is not None:
            raise self.insert_error
        if profile.id in self.rows:
            raise RecordConflictError("duplicate key value violates unique constraint")
        row = Profile(**profile.model_dump())
        self.rows[profile.id] = row
        return row

    async def update(self, user_id: str, fields: dict[str, Any]) -> Profile:
        self.calls.append(("update", user_id, fields))
        if self.update_error is not None:
            raise self.update_error
        cleaned = {k: v.strip() if isinstance(v, str) else v for k, v in fields.items()}
        row = self.rows[user_id].model_copy(update=cleaned)
        self.rows[user_id] = row
        return row


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    return FakeIdentityProvider()


@pytest.fixture
def profile_store() -> FakeProfileStore:
    return FakeProfileStore()


@pytest.fixture
def manager(identity_provider, profile_store) -> SessionManager:
    return SessionManager(identity=identity_provider, profiles=profile_store)


@pytest.fixture
def renter(identity_provider, profile_store) -> Identity:
    """A registered renter with a profile (not signed in)."""
    identity = identity_provider.add_account("renter@x.com", "secret1", user_id="renter-1")
    profile_store.add_profile(identity.id, role=Role.RENTER, name="Abebe")
    return identity


@pytest.fixture
def agent(identity_provider, profile_store) -> Identity:
    """A registered agent with a profile (not signed in)."""
    identity = identity_provider.add_account("agent@x.com", "secret2", user_id="agent-1")
    profile_store.add_profile(identity.id, role=Role.AGENT, name="Sara", phone="+251922222222")
    return identity
