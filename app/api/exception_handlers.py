from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.services.errors import (
    Conflict,
    InvalidCredentials,
    InvalidInput,
    LoyaltyError,
    NotFound,
    StoreUnavailable,
)

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = "5"

_STATUS_BY_ERROR: list[tuple[type[LoyaltyError], int]] = [
    (InvalidInput, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (StoreUnavailable, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": StoreUnavailable.message},
        headers={"Retry-After": RETRY_AFTER_SECONDS},
    )


async def loyalty_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map service errors to generic client-facing responses."""
    if isinstance(exc, StoreUnavailable):
        logger.warning(f"Storage unavailable on {request.method} {request.url.path}")
        return _unavailable()

    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return JSONResponse(status_code=code, content={"detail": error_type.message})

    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": LoyaltyError.message})


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Reject malformed bodies without echoing the submitted values back."""
    fields = []
    if isinstance(exc, RequestValidationError):
        fields = [".".join(str(loc) for loc in error["loc"]) for error in exc.errors()]
    logger.warning(f"Validation error on {request.method} {request.url.path}: {fields}")

    settings = request.app.state.settings
    if request.url.path == f"{settings.api_prefix}/admin/login":
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": InvalidCredentials.message})
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": InvalidInput.message})


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc!s}", exc_info=True)
    return _unavailable()


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all unhandled exceptions.

    Logs the full exception with traceback and returns a safe error response.
    """
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc!s}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoyaltyError, loyalty_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(OperationalError, storage_error_handler)
    app.add_exception_handler(PoolTimeoutError, storage_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
