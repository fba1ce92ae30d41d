"""Application error taxonomy and the exception handlers that render it.

Services raise these typed errors; the API layer never translates them by hand.
Every error carries an HTTP status code and a human-readable message, and may
carry a list of per-field reasons.
"""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)


class UnauthorizedError(AppError):
    """Missing, invalid, expired or stale credential."""

    status_code = 401
    default_message = "Unauthorized request"


class NotFoundError(AppError):
    """Referenced gym, user or trainer does not exist."""

    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    """Duplicate unique field or duplicate membership."""

    status_code = 409
    default_message = "Resource already exists"


class AlreadyInvitedError(ConflictError):
    """The trainer already holds a membership in the gym."""

    default_message = "Trainer already invited to this gym"


class ValidationFailedError(AppError):
    """Missing or malformed required input."""

    status_code = 400
    default_message = "Invalid request"


class DeliveryError(AppError):
    """The notifier could not deliver a message."""

    status_code = 502
    default_message = "Failed to deliver message"


def _error_body(detail: object, errors: list[str] | None = None) -> dict[str, object]:
    body: dict[str, object] = {"detail": detail, "request_id": correlation_id.get()}
    if errors:
        body["errors"] = errors
    return body


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning(
                "Request failed",
                path=request.url.path,
                error=exc.message,
                status_code=exc.status_code,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.detail))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            path=request.url.path,
        )
        return JSONResponse(status_code=500, content=_error_body("Internal server error"))
