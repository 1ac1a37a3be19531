"""Error types for the Meno API and their translation to HTTP responses.

Every error raised by the stores or the access guard is a ``MenoError``. The
handlers registered by ``register_error_handlers`` turn them (and FastAPI's own
request errors) into a JSON body of the form ``{"error": message}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class MenoError(Exception):
    """Base exception for all Meno API errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(MenoError):
    """Raised when required input is missing or empty."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(MenoError):
    """Raised when a unique constraint (the user email) would be violated."""

    status_code = status.HTTP_409_CONFLICT


class UnauthenticatedError(MenoError):
    """Raised when credentials are missing, malformed or wrong."""

    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(UnauthenticatedError):
    """Raised when a bearer token has a bad signature or is expired.

    Answered with 403 rather than 401 so clients can tell a rejected token
    from a missing header.
    """

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundOrForbiddenError(MenoError):
    """Raised when an owner-scoped note operation matched no row."""

    status_code = status.HTTP_404_NOT_FOUND


class InternalError(MenoError):
    """Raised for unclassified storage or hashing failures."""


class ConfigurationError(MenoError):
    """Raised when settings cannot be parsed."""


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def meno_error_handler(request: Request, exc: MenoError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed", request.method, request.url.path)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


# PUBLIC_INTERFACE
def register_error_handlers(app: FastAPI) -> None:
    """Install the ``{"error": message}`` translation on the app."""
    app.add_exception_handler(MenoError, meno_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
