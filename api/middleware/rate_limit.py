"""
Rate limiting middleware using slowapi.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import get_config
from core.logger import get_logger

logger = get_logger(__name__)
config = get_config()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"],
    storage_uri=config.rate_limit_storage_uri
)


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom handler for rate limit exceeded."""
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        ip=get_remote_address(request),
        limit=str(exc.detail)
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": {
                "message": "Rate limit exceeded. Please try again later.",
                "error_code": "rate_limit_exceeded",
                "limit": str(exc.detail)
            }
        }
    )
