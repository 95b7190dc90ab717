"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from shared.utils.exceptions import NotFoundError, ForbiddenError, ValidationError

    raise NotFoundError("Order", order_id)
    raise ForbiddenError("access this hotel")
    raise ValidationError("Invalid status")
"""

from fastapi import HTTPException, status
from typing import Any

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions should inherit from this class
    to ensure consistent logging and response format.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 Unauthorized
# =============================================================================


class UnauthorizedError(AppException):
    """No authenticated caller (401)."""

    def __init__(self, detail: str = "Unauthorized", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            log_level="info",
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", order_id)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("access this hotel", hotel_id=hotel_id)
    """

    def __init__(self, action: str | None = None, detail: str | None = None, **log_context: Any):
        if detail is None:
            detail = f"Not authorized to {action}" if action else "Access denied"

        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            log_level="warning",
            action=action,
            **log_context,
        )


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Invalid status", field="status", value=value)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409). Clients may retry.

    Usage:
        raise ConflictError("Order is being updated by another request, retry")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )
