"""Identity and profile models."""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

# Deliberately loose: the identity provider does the real verification
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
MIN_PASSWORD_LENGTH = 6

NonBlankStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
EmailStr = Annotated[str, StringConstraints(strip_whitespace=True, pattern=EMAIL_PATTERN)]


class Role(str, Enum):
    """Account type chosen at sign-up."""

    RENTER = "renter"
    AGENT = "agent"


class SessionEvent(str, Enum):
    """Session-change events emitted by the identity provider."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


class Identity(BaseModel):
    """Authentication record issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str | None = None
    access_token: str | None = Field(default=None, repr=False, exclude=True)


class SessionChange(BaseModel):
    """A session-change notification from the identity provider."""

    model_config = ConfigDict(frozen=True)

    event: SessionEvent
    identity: Identity | None = None


class Profile(BaseModel):
    """Application-level user record, keyed by identity id."""

    model_config = ConfigDict(frozen=True)

    id: str
    role: Role
    name: str
    phone: str
    photo_url: str | None = None
    created_at: datetime | None = None


class ProfileCreate(BaseModel):
    """Row inserted into the profiles table during sign-up."""

    id: str
    role: Role
    name: NonBlankStr
    phone: NonBlankStr
    photo_url: str | None = None


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile."""

    model_config = ConfigDict(extra="forbid")

    name: NonBlankStr | None = None
    phone: NonBlankStr | None = None
    photo_url: str | None = None

    @field_validator("name", "phone")
    @classmethod
    def _not_cleared(cls, value: str | None) -> str | None:
        # Omitted means unchanged; an explicit None would blank a required column
        if value is None:
            raise ValueError("cannot be empty")
        return value


class SignInRequest(BaseModel):
    """Sign-in form input."""

    email: EmailStr
    password: str = Field(min_length=1, repr=False)


class SignUpRequest(BaseModel):
    """Sign-up form input."""

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, repr=False)
    name: NonBlankStr
    phone: NonBlankStr
    role: Role

    def metadata(self) -> dict[str, str]:
        """User metadata attached to the identity at registration."""
        return {"name": self.name, "phone": self.phone, "role": self.role.value}
