"""Error taxonomy for Rental Market.

Backend error shapes (gotrue, postgrest, httpx) are classified into these
classes at the provider boundary; nothing above the providers sees them.
"""


class RentalMarketError(Exception):
    """Base class for all errors raised by public operations."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RentalMarketError):
    """Caller input is malformed. Raised before any network call."""

    default_message = "Invalid input"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class InvalidCredentialsError(RentalMarketError):
    """The identity provider rejected the email/password pair."""

    default_message = "Invalid email or password"


class EmailAlreadyRegisteredError(RentalMarketError):
    """An identity already exists for this email."""

    default_message = "An account with this email already exists"


class WeakPasswordError(RentalMarketError):
    """The identity provider refused the password as too weak."""

    default_message = "Password is too weak"


class EmailConfirmationRequiredError(RentalMarketError):
    """The identity was created but no session is issued until the email is confirmed."""

    default_message = "Please check your email to confirm your account"


class ProfileCreationFailedError(RentalMarketError):
    """The identity was created but its profile row could not be inserted."""

    default_message = "Could not create your profile, please try again"


class ProfileNotFoundError(RentalMarketError):
    """No profile row exists for the identity."""

    default_message = "Profile not found"


class NotAuthenticatedError(RentalMarketError):
    """The operation needs a signed-in user."""

    default_message = "No user logged in"


class ForbiddenRoleError(RentalMarketError):
    """The signed-in user's role does not allow the operation."""

    default_message = "Your account type cannot perform this action"


class UpdateRejectedError(RentalMarketError):
    """The store refused a profile update."""

    default_message = "Profile update was rejected"


class NetworkError(RentalMarketError):
    """The backend could not be reached."""

    default_message = "Network error, please check your connection"


class SignOutError(RentalMarketError):
    """The remote session could not be invalidated."""

    default_message = "Sign out failed"


class RecordConflictError(RentalMarketError):
    """A row with the same key already exists."""

    default_message = "Record already exists"


class RecordValidationError(RentalMarketError):
    """The store rejected a row as invalid."""

    default_message = "Record was rejected by the database"


class BackendError(RentalMarketError):
    """Unrecognized backend failure. Keeps the original message for display."""

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        status: int | None = None,
    ) -> None:
        self.code = code
        self.status = status
        super().__init__(message)
