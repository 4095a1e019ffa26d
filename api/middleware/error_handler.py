"""
Global exception handlers.

Every error leaves the API in the same envelope:
{"error": {"message": ..., "error_code": ..., ...}}
"""

from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logger import get_logger
from modules.keywords.manager import KeywordValidationError

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or "internal_error"
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(APIError):
    """Requested resource does not exist."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, "not_found", details)


def error_response(status_code: int, message: str, error_code: str, **extra: Any) -> JSONResponse:
    """Build the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"message": message, "error_code": error_code, **extra}}
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True
    )

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An internal server error occurred",
        "internal_error",
        path=request.url.path,
        method=request.method
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handler for HTTP exceptions."""
    logger.warning(
        "HTTP exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        detail=str(exc.detail)
    )

    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    return error_response(
        exc.status_code,
        str(exc.detail),
        f"http_{exc.status_code}",
        path=request.url.path
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request validation errors, with per-field details."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type")
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error",
        path=request.url.path,
        method=request.method,
        errors=errors
    )

    return error_response(422, "Validation error", "validation_error", details=errors)


async def keyword_validation_handler(request: Request, exc: KeywordValidationError) -> JSONResponse:
    """Handler for keywords rejected by the keyword manager."""
    logger.warning("Keyword rejected", path=request.url.path, error=str(exc))
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc), "invalid_keyword")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handler for APIError exceptions."""
    logger.warning(
        "API error",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code,
        message=exc.message
    )

    return error_response(exc.status_code, exc.message, exc.error_code, details=exc.details)
