"""
Rate limiting utilities using slowapi.
Protects the item status endpoint from runaway clients.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.config.constants import ErrorMessages
from shared.config.settings import settings
from shared.config.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Key requests by bearer token when present, else by client IP."""
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return f"token:{authorization[-32:]}"
    return get_remote_address(request)


# Limiter instance shared by all routers
limiter = Limiter(key_func=get_rate_limit_key, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Custom handler for rate limit exceeded errors.
    Returns a JSON response with retry information.
    """
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "error": ErrorMessages.RATE_LIMIT_EXCEEDED,
            "retry_after": exc.detail,
        },
        headers={"Retry-After": "60"},
    )
