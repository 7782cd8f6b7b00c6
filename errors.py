"""
Error kinds raised by the handlers and the exception handlers that turn
them into ``{"error": ...}`` responses.

Server-side kinds (store failures, unresolved collections, anything
unexpected) are logged with their cause and answered with a generic
message; client-side kinds carry their own message.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from pretty_json import PrettyJSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An internal server error occurred"


class ApiError(Exception):
    status_code = 500
    message = GENERIC_ERROR

    def __init__(self, message=None, *, status_code=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code:
            self.status_code = status_code


class ValidationError(ApiError):
    """Malformed request body or path parameter."""

    status_code = 400
    message = "Invalid request"


class InvalidIdentity(ValidationError):
    """A path id that is not a valid ObjectId."""

    message = "Invalid id"


class NotFound(ApiError):
    """A well-formed identity that matched no document."""

    status_code = 404
    message = "Not found"


class StoreError(ApiError):
    """The store operation failed or the connection is unavailable."""


class ResolutionError(ApiError):
    """A collection was requested before the store connection was ready."""


def _error_response(status_code: int, message: str, headers=None) -> PrettyJSONResponse:
    return PrettyJSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def api_error_handler(request: Request, exc: ApiError) -> PrettyJSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc,
                     exc_info=exc.__cause__ or exc)
        return _error_response(exc.status_code, GENERIC_ERROR)
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> PrettyJSONResponse:
    logger.warning("Invalid request body on %s %s: %s", request.method, request.url.path, exc.errors())
    return _error_response(400, "Invalid request body")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PrettyJSONResponse:
    if exc.status_code == 404 and request.url.path.startswith("/images"):
        return _error_response(404, "Image not found")
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> PrettyJSONResponse:
    logger.error("Global error handler: %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(500, GENERIC_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
