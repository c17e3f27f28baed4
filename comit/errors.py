"""Standardized error handling.

This module provides:
1. Exception classes for scheduling and persistence failures
2. Exception handlers for FastAPI
3. The standard error response model

Usage:
    from comit.errors import ValidationError, NotFoundError

    if not user_name.strip():
        raise ValidationError(detail="Name is required", field="user_name")

    # Register handlers in main.py:
    from comit.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for errors surfaced to clients."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class ValidationError(APIError):
    """Rejected user input (400). No state is mutated."""

    status_code = 400
    error = "validation_error"
    detail = "Invalid input"


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class SaveInProgressError(APIError):
    """A save for the same session is still in flight (409)."""

    status_code = 409
    error = "save_in_progress"
    detail = "A save is already in progress"


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class PersistenceError(APIError):
    """The persistence collaborator failed a fetch or save (503)."""

    status_code = 503
    error = "persistence_error"
    detail = "Availability storage is unavailable"


class DatabaseError(PersistenceError):
    """Database error."""

    error = "database_error"
    detail = "Database operation failed"


class DataIntegrityWarning(UserWarning):
    """A stored record references a cell or status the event does not know.

    These are dropped from aggregation and never raised.
    """

    def __init__(self, user_name: str, cell_key: str, reason: str) -> None:
        self.user_name = user_name
        self.cell_key = cell_key
        self.reason = reason
        super().__init__(f"{reason}: user={user_name!r} cell={cell_key!r}")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPExceptions with standard format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=_status_to_error_type(exc.status_code),
            detail=str(exc.detail),
        ).model_dump(exclude_none=True),
    )


def _status_to_error_type(status_code: int) -> str:
    """Map HTTP status code to error type string."""
    mapping = {
        400: "bad_request",
        404: "not_found",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
