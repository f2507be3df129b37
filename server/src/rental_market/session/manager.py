"""Client-side session state machine.

Keeps "who is logged in" in sync with the hosted identity provider and the
profiles table, and publishes immutable snapshots to the rest of the app.

States: LOADING -> {AUTHENTICATED, ANONYMOUS}, then AUTHENTICATED <-> ANONYMOUS.
LOADING is never re-entered.

Conflict policy between manual operations and pushed session events:
- Manual operations (start, sign_in, sign_up, sign_out, update_profile) run
  one at a time under a lock, and their final assignment always wins.
- Events arriving while a manual operation is in flight are dropped.
- Each write bumps a generation counter. A background profile resolution
  only commits if no newer write or newer event happened while it was
  suspended, so later events win over earlier ones.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from rental_market.exceptions import (
    BackendError,
    ForbiddenRoleError,
    NotAuthenticatedError,
    ProfileCreationFailedError,
    ProfileNotFoundError,
    RentalMarketError,
    SignOutError,
    ValidationError,
)
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
from rental_market.models.session import SessionSnapshot, SessionStatus
from rental_market.providers.base import IdentityProvider, ProfileStore, Unsubscribe
from rental_market.session.events import SnapshotBus, SnapshotListener

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_input(model: type[ModelT], /, **fields: Any) -> ModelT:
    """Build ``model`` from caller input, raising our ValidationError.

    Args:
        model: The pydantic model describing the form
        **fields: Raw caller input

    Returns:
        The validated model
    """
    try:
        return model(**fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        message = f"Invalid {field}: {first['msg']}" if field else first["msg"]
        raise ValidationError(message, field=field) from e


class SessionManager:
    """Single source of truth for the signed-in user.

    Args:
        identity: The identity provider
        profiles: The profile store
    """

    def __init__(self, identity: IdentityProvider, profiles: ProfileStore) -> None:
        self._identity = identity
        self._profiles = profiles
        self._bus = SnapshotBus(SessionSnapshot.loading())
        self._lock = asyncio.Lock()
        self._generation = 0

        # Manual operation currently holding the lock, and the identity it targets
        self._operation_name: str | None = None
        self._operation_target: str | None = None

        self._background: set[asyncio.Task] = set()
        self._unsubscribe: Unsubscribe | None = None
        self._started = False

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> SessionSnapshot:
        """Current session state (immutable)."""
        return self._bus.latest

    def subscribe(self) -> asyncio.Queue[SessionSnapshot | None]:
        """Queue receiving the current snapshot, then every change.

        ``None`` is delivered once the manager is closed.
        """
        return self._bus.subscribe()

    def unsubscribe(self, queue: asyncio.Queue[SessionSnapshot | None]) -> None:
        self._bus.unsubscribe(queue)

    def add_listener(self, listener: SnapshotListener) -> Callable[[], None]:
        """Call ``listener`` on every change; returns a remover."""
        return self._bus.add_listener(listener)

    def require_user(self, role: Role | None = None) -> SessionSnapshot:
        """Return the snapshot if a user (optionally of ``role``) is signed in.

        Raises:
            NotAuthenticatedError: Nobody is signed in
            ForbiddenRoleError: The signed-in user has another role
        """
        snapshot = self.snapshot
        if not snapshot.is_authenticated:
            raise NotAuthenticatedError()
        if role is not None and snapshot.profile.role != role:
            raise ForbiddenRoleError(f"Only {role.value} accounts can do this")
        return snapshot

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> SessionSnapshot:
        """Subscribe to session events and resolve the stored session.

        Runs once; later calls return the current snapshot.
        """
        if self._started:
            return self.snapshot
        self._started = True
        self._unsubscribe = self._identity.on_session_change(self._on_session_change)

        async with self._operation("start"):
            if self.snapshot.status != SessionStatus.LOADING:
                # A manual operation already resolved the session
                return self.snapshot

            try:
                identity = await self._identity.current_session()
            except RentalMarketError as e:
                logger.warning(f"Could not read stored session: {e.message}")
                identity = None

            if identity is None:
                self._commit(SessionSnapshot.anonymous())
            else:
                self._operation_target = identity.id
                self._commit(await self._resolve(identity))

        return self.snapshot

    async def close(self) -> None:
        """Stop listening for events and end subscriber streams."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        for task in list(self._background):
            task.cancel()
        await self.settle()
        self._bus.close()

    async def settle(self) -> None:
        """Wait for in-flight background resolutions to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> SessionSnapshot:
        """Sign in and load the user's profile before returning.

        On a rejected or unreachable sign-in the previous snapshot is kept.

        Raises:
            ValidationError: Malformed email or empty password
            InvalidCredentialsError: The provider rejected the pair
            NetworkError: The provider could not be reached
            ProfileNotFoundError: Signed in, but the identity has no profile
            BackendError: Signed in, but the profile could not be loaded
        """
        request = validate_input(SignInRequest, email=email, password=password)

        async with self._operation("sign_in"):
            identity = await self._identity.authenticate(request.email, request.password)
            self._operation_target = identity.id

            try:
                profile = await self._profiles.get(identity.id)
            except Exception as e:
                logger.warning(f"Signed in as {identity.id} but profile unavailable: {e}")
                await self._invalidate_quietly()
                self._commit(SessionSnapshot.anonymous())
                if isinstance(e, RentalMarketError):
                    raise
                raise BackendError(str(e)) from e

            self._commit(SessionSnapshot.authenticated(identity, profile))
            return self.snapshot

    async def sign_up(
        self,
        email: str,
        password: str,
        name: str,
        phone: str,
        role: Role | str,
    ) -> SessionSnapshot:
        """Create an identity and its profile as one logical step.

        If the profile insert fails the new identity is signed back out so no
        profileless session is left behind.

        Raises:
            ValidationError: Input failed pre-flight checks
            EmailAlreadyRegisteredError: The email is taken
            WeakPasswordError: The provider refused the password
            EmailConfirmationRequiredError: No session until the email is confirmed
            ProfileCreationFailedError: The profile insert failed
        """
        request = validate_input(
            SignUpRequest,
            email=email,
            password=password,
            name=name,
            phone=phone,
            role=role,
        )

        async with self._operation("sign_up"):
            identity = await self._identity.register(
                request.email, request.password, request.metadata()
            )
            self._operation_target = identity.id
            logger.info(f"Created identity {identity.id} ({request.role.value})")

            try:
                profile = await self._profiles.insert(ProfileCreate(
                    id=identity.id,
                    role=request.role,
                    name=request.name,
                    phone=request.phone,
                ))
            except Exception as e:
                logger.error(f"Profile creation failed for {identity.id}: {e}")
                await self._invalidate_quietly()
                self._commit(SessionSnapshot.anonymous())
                message = e.message if isinstance(e, RentalMarketError) else None
                raise ProfileCreationFailedError(
                    f"Could not create your profile: {message}" if message else None
                ) from e

            self._commit(SessionSnapshot.authenticated(identity, profile))
            return self.snapshot

    async def sign_out(self) -> None:
        """End the session.

        Local state is cleared even if the remote call fails; the remote
        failure is raised afterwards.

        Raises:
            SignOutError: The remote session could not be invalidated
        """
        async with self._operation("sign_out"):
            self._operation_target = self.snapshot.user_id
            try:
                await self._identity.invalidate()
            except SignOutError as e:
                logger.warning(f"Remote sign out failed, local session cleared: {e.message}")
                raise
            except RentalMarketError as e:
                logger.warning(f"Remote sign out failed, local session cleared: {e.message}")
                raise SignOutError(e.message) from e
            finally:
                self._commit(SessionSnapshot.anonymous())

    async def update_profile(
        self,
        fields: Mapping[str, Any] | None = None,
        /,
        **changes: Any,
    ) -> Profile:
        """Update the signed-in user's profile.

        Only fields that differ from the loaded profile are sent. The stored
        row returned by the server replaces the in-memory profile.

        Args:
            fields: Changes as a mapping (e.g. a request body)
            **changes: Changes as keywords; these win over ``fields``

        Raises:
            NotAuthenticatedError: Nobody is signed in
            ValidationError: Unknown or malformed fields
            UpdateRejectedError: The store refused the update
        """
        async with self._operation("update_profile"):
            current = self.require_user()
            update = validate_input(ProfileUpdate, **{**(fields or {}), **changes})

            changes = {
                key: value
                for key, value in update.model_dump(exclude_unset=True).items()
                if getattr(current.profile, key) != value
            }
            if not changes:
                logger.debug("Profile update has no changes")
                return current.profile

            self._operation_target = current.user_id
            profile = await self._profiles.update(current.user_id, changes)
            self._commit(SessionSnapshot.authenticated(current.identity, profile))
            return profile

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        async with self._lock:
            self._operation_name = name
            self._operation_target = None
            try:
                yield
            finally:
                self._operation_name = None
                self._operation_target = None

    def _commit(self, snapshot: SessionSnapshot) -> None:
        """Make ``snapshot`` current, notifying subscribers only on change."""
        self._generation += 1
        previous = self._bus.latest
        if snapshot == previous:
            return
        self._bus.publish(snapshot)
        logger.info(
            f"Session {previous.status.value} -> {snapshot.status.value}"
            f" (user={snapshot.user_id})"
        )

    async def _resolve(self, identity: Identity) -> SessionSnapshot:
        """Resolve an identity to a snapshot without raising.

        An identity without a profile, or whose profile cannot be fetched,
        counts as signed out.
        """
        try:
            profile = await self._profiles.get(identity.id)
        except ProfileNotFoundError:
            logger.info(f"Identity {identity.id} has no profile, treating as signed out")
            return SessionSnapshot.anonymous()
        except Exception as e:
            logger.error(f"Profile fetch failed for {identity.id}: {e}")
            return SessionSnapshot.anonymous()
        return SessionSnapshot.authenticated(identity, profile)

    async def _invalidate_quietly(self) -> None:
        """Best-effort remote sign out used by compensating actions."""
        try:
            await self._identity.invalidate()
        except RentalMarketError as e:
            logger.warning(f"Compensating sign out failed: {e.message}")

    def _on_session_change(self, change: SessionChange) -> None:
        """Handle a pushed session event (runs on the event loop)."""
        target = change.identity.id if change.identity else None

        if self._operation_name is not None:
            logger.debug(
                f"Ignoring {change.event.value} for {target}: {self._operation_name}"
                f" in flight (target={self._operation_target})"
            )
            return

        current = self.snapshot
        if (
            change.event == SessionEvent.TOKEN_REFRESHED
            and current.is_authenticated
            and target == current.user_id
        ):
            logger.debug(f"Token refreshed for {target}, session unchanged")
            return

        if change.identity is None:
            if current.status != SessionStatus.LOADING:
                self._commit(SessionSnapshot.anonymous())
            return

        # Supersedes any resolution still running for an earlier event
        self._generation += 1
        task = asyncio.get_running_loop().create_task(
            self._resolve_in_background(change, self._generation)
        )
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _resolve_in_background(self, change: SessionChange, generation: int) -> None:
        snapshot = await self._resolve(change.identity)
        if self._operation_name is not None or self._generation != generation:
            logger.debug(f"Discarding stale resolution for {change.event.value}")
            return
        self._commit(snapshot)
