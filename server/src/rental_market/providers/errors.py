"""Classification of Supabase auth and PostgREST errors.

Backend errors arrive in several shapes depending on the client library
version: gotrue ``AuthApiError`` with ``code``/``status``, PostgREST
``APIError`` with a Postgres SQLSTATE ``code``, or raw httpx transport
errors. Everything is mapped onto ``rental_market.exceptions``.
"""

import logging

import httpx

from rental_market.exceptions import (
    BackendError,
    EmailAlreadyRegisteredError,
    EmailConfirmationRequiredError,
    InvalidCredentialsError,
    NetworkError,
    RecordConflictError,
    RecordValidationError,
    RentalMarketError,
    ValidationError,
    WeakPasswordError,
)

logger = logging.getLogger(__name__)

# gotrue error codes
INVALID_CREDENTIALS_CODES = frozenset({"invalid_credentials", "invalid_grant"})
ALREADY_REGISTERED_CODES = frozenset({"user_already_exists", "email_exists"})
WEAK_PASSWORD_CODES = frozenset({"weak_password"})
UNCONFIRMED_CODES = frozenset({"email_not_confirmed"})
AUTH_VALIDATION_CODES = frozenset({"validation_failed", "email_address_invalid"})

# Exception class names used by gotrue for transport-level failures
RETRYABLE_ERROR_NAMES = frozenset({"AuthRetryableError"})

# Postgres SQLSTATE / PostgREST codes
CONFLICT_CODES = frozenset({"23505"})  # unique_violation
ROW_VALIDATION_CODES = frozenset({
    "23502",     # not_null_violation
    "23503",     # foreign_key_violation
    "23514",     # check_violation
    "22P02",     # invalid_text_representation (e.g. bad enum value)
    "22001",     # string_data_right_truncation
    "42501",     # insufficient_privilege (row level security)
    "PGRST204",  # unknown column
})


def error_code(exc: BaseException) -> str | None:
    """Return the backend error code, if the error carries one."""
    code = getattr(exc, "code", None)
    if code is None or code == "":
        return None
    return str(code)


def error_status(exc: BaseException) -> int | None:
    """Return the HTTP status attached to the error, if any."""
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def error_message(exc: BaseException) -> str:
    """Return the most human-readable message the error offers."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or type(exc).__name__


def _is_transport_error(exc: BaseException) -> bool:
    return (
        isinstance(exc, (httpx.TransportError, ConnectionError, TimeoutError))
        or type(exc).__name__ in RETRYABLE_ERROR_NAMES
    )


def classify_auth_error(exc: BaseException) -> RentalMarketError:
    """Map an identity-provider failure onto the error taxonomy.

    Args:
        exc: The exception raised by the auth client

    Returns:
        The matching RentalMarketError (BackendError when unrecognized)
    """
    if isinstance(exc, RentalMarketError):
        return exc
    if _is_transport_error(exc):
        return NetworkError()

    code = error_code(exc)
    message = error_message(exc)
    lowered = message.lower()

    if code in INVALID_CREDENTIALS_CODES or "invalid login credentials" in lowered:
        return InvalidCredentialsError()
    if code in ALREADY_REGISTERED_CODES or "already registered" in lowered:
        return EmailAlreadyRegisteredError()
    if code in WEAK_PASSWORD_CODES or type(exc).__name__ == "AuthWeakPasswordError":
        return WeakPasswordError(message)
    if code in UNCONFIRMED_CODES:
        return EmailConfirmationRequiredError()
    if code in AUTH_VALIDATION_CODES:
        return ValidationError(message)

    logger.warning(f"Unrecognized auth error ({type(exc).__name__}, code={code}): {message}")
    return BackendError(message, code=code, status=error_status(exc))


def classify_store_error(exc: BaseException) -> RentalMarketError:
    """Map a PostgREST failure onto the error taxonomy.

    Args:
        exc: The exception raised by the table client

    Returns:
        The matching RentalMarketError (BackendError when unrecognized)
    """
    if isinstance(exc, RentalMarketError):
        return exc
    if _is_transport_error(exc):
        return NetworkError()

    code = error_code(exc)
    message = error_message(exc)

    if code in CONFLICT_CODES:
        return RecordConflictError(message)
    if code in ROW_VALIDATION_CODES:
        return RecordValidationError(message)

    logger.warning(f"Unrecognized store error ({type(exc).__name__}, code={code}): {message}")
    return BackendError(message, code=code, status=error_status(exc))
