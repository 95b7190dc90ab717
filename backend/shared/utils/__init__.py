"""
Utilities module: Exceptions and schemas.
"""

from shared.utils.exceptions import (
    AppException,
    UnauthorizedError,
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
)
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "AppException",
    "UnauthorizedError",
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    # schemas
    "ErrorResponse",
]
