"""Session snapshot model."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, model_validator

from rental_market.models.identity import Identity, Profile


class SessionStatus(str, Enum):
    """Where the session state machine currently is."""

    LOADING = "loading"              # Initial only, never re-entered
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionSnapshot(BaseModel):
    """Immutable view of who is logged in.

    ``status`` is AUTHENTICATED exactly when both identity and profile are
    present. LOADING and ANONYMOUS carry neither.
    """

    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None
    profile: Profile | None = None
    status: SessionStatus = SessionStatus.LOADING

    @model_validator(mode="after")
    def _check_status(self) -> "SessionSnapshot":
        if self.status == SessionStatus.AUTHENTICATED:
            if self.identity is None or self.profile is None:
                raise ValueError("authenticated snapshot needs identity and profile")
            if self.identity.id != self.profile.id:
                raise ValueError("profile does not belong to identity")
        elif self.identity is not None or self.profile is not None:
            raise ValueError(f"{self.status.value} snapshot cannot carry a user")
        return self

    @classmethod
    def loading(cls) -> "SessionSnapshot":
        return cls(status=SessionStatus.LOADING)

    @classmethod
    def anonymous(cls) -> "SessionSnapshot":
        return cls(status=SessionStatus.ANONYMOUS)

    @classmethod
    def authenticated(cls, identity: Identity, profile: Profile) -> "SessionSnapshot":
        return cls(identity=identity, profile=profile, status=SessionStatus.AUTHENTICATED)

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def user_id(self) -> str | None:
        """Identity id of the signed-in user, if any."""
        return self.identity.id if self.identity else None
