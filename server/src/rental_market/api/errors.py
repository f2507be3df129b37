"""HTTP mapping for the error taxonomy."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rental_market.exceptions import (
    EmailAlreadyRegisteredError,
    EmailConfirmationRequiredError,
    ForbiddenRoleError,
    InvalidCredentialsError,
    NetworkError,
    NotAuthenticatedError,
    ProfileCreationFailedError,
    ProfileNotFoundError,
    RecordConflictError,
    RecordValidationError,
    RentalMarketError,
    SignOutError,
    UpdateRejectedError,
    ValidationError,
    WeakPasswordError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[RentalMarketError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    WeakPasswordError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    RecordValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UpdateRejectedError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidCredentialsError: status.HTTP_401_UNAUTHORIZED,
    NotAuthenticatedError: status.HTTP_401_UNAUTHORIZED,
    ForbiddenRoleError: status.HTTP_403_FORBIDDEN,
    EmailConfirmationRequiredError: status.HTTP_403_FORBIDDEN,
    ProfileNotFoundError: status.HTTP_404_NOT_FOUND,
    EmailAlreadyRegisteredError: status.HTTP_409_CONFLICT,
    RecordConflictError: status.HTTP_409_CONFLICT,
    NetworkError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ProfileCreationFailedError: status.HTTP_502_BAD_GATEWAY,
    SignOutError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error: RentalMarketError) -> int:
    """HTTP status for an error (most specific class wins)."""
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_400_BAD_REQUEST


async def rental_market_error_handler(request: Request, exc: RentalMarketError) -> JSONResponse:
    """Render an error as ``{"detail", "error"[, "field"]}`` for inline display."""
    code = status_for(exc)
    if code >= 500:
        logger.warning(f"{request.method} {request.url.path} failed: {exc.message}")
    body = {"detail": exc.message, "error": type(exc).__name__}
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=code, content=body)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RentalMarketError, rental_market_error_handler)
