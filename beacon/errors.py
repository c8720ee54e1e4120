"""Standardized error handling for the beacon API.

This module provides:
1. Custom exception classes for storage failures surfaced to clients
2. Exception handlers for FastAPI
3. Standard error response models

Enrichment failures (geo lookups, webhook forwarding) never reach these
classes: they are absorbed where they happen and only logged.

Usage:
    from beacon.errors import PersistenceError

    try:
        store.append(record)
    except OSError as exc:
        raise PersistenceError(detail="Failed to save visit") from exc

    # Register handlers when building the app:
    from beacon.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger("beacon.errors")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            context=self.context,
        )


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class PersistenceError(APIError):
    """Visit log read or write failed (500)."""

    status_code = 500
    error = "persistence_error"
    detail = "Visit log operation failed"


class LogParseError(APIError):
    """A visit log line could not be parsed (500)."""

    status_code = 500
    error = "log_parse_error"
    detail = "Failed to read visits"


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


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
