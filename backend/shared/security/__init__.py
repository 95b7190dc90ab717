"""
Security module: Authentication, hotel membership, rate limiting.
"""

from shared.security.auth import (
    sign_jwt,
    sign_access_token,
    verify_jwt,
    get_bearer_token,
    current_user_context,
    require_hotel_access,
    require_department,
)
from shared.security.rate_limit import (
    limiter,
    rate_limit_exceeded_handler,
)

__all__ = [
    # auth
    "sign_jwt",
    "sign_access_token",
    "verify_jwt",
    "get_bearer_token",
    "current_user_context",
    "require_hotel_access",
    "require_department",
    # rate_limit
    "limiter",
    "rate_limit_exceeded_handler",
]
