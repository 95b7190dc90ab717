"""
Authentication and authorization utilities.
Handles staff JWT bearer tokens and hotel membership checks.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import jwt
from fastapi import Depends, Header
from sqlalchemy.orm import Session

from shared.config.constants import ErrorMessages, StaffDepartment
from shared.config.settings import (
    JWT_SECRET,
    JWT_ISSUER,
    JWT_AUDIENCE,
    settings,
)
from shared.config.logging import auth_logger as logger
from shared.infrastructure.db import get_db
from shared.utils.exceptions import ForbiddenError, UnauthorizedError


def sign_jwt(
    payload: dict[str, Any],
    ttl_seconds: int | None = None,
    token_type: str = "access",
) -> str:
    """
    Sign a JWT token with the given payload.

    Args:
        payload: Claims to include in the token (sub, email, ...)
        ttl_seconds: Token lifetime in seconds. Defaults to access token expiry.
        token_type: Type of token.

    Returns:
        Signed JWT token string.
    """
    if ttl_seconds is None:
        ttl_seconds = settings.jwt_access_token_expire_minutes * 60

    now = int(time.time())
    data = {
        **payload,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
        "iat": now,
        "exp": now + ttl_seconds,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(data, JWT_SECRET, algorithm="HS256")


def sign_access_token(user_id: str, email: str | None = None, ttl_seconds: int | None = None) -> str:
    """Issue an access token for a user."""
    payload: dict[str, Any] = {"sub": str(user_id)}
    if email:
        payload["email"] = email
    return sign_jwt(payload, ttl_seconds=ttl_seconds)


def verify_jwt(token: str) -> dict[str, Any]:
    """
    Verify and decode a JWT token.

    Raises:
        UnauthorizedError: If the token is invalid, expired or lacks a subject.
    """
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=["HS256"],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError(ErrorMessages.TOKEN_EXPIRED)
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError(ErrorMessages.INVALID_TOKEN, reason=str(e))

    if not payload.get("sub"):
        raise UnauthorizedError("Invalid token: missing subject claim")

    if payload.get("type") not in ("access", None):
        raise UnauthorizedError("Invalid token: invalid type claim")

    return payload


def get_bearer_token(authorization: str | None) -> str:
    """
    Extract bearer token from Authorization header.

    Raises:
        UnauthorizedError: If header is missing or malformed.
    """
    if not authorization:
        raise UnauthorizedError(ErrorMessages.NOT_AUTHENTICATED)
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid Authorization header format. Expected: Bearer <token>")
    return authorization.split(" ", 1)[1].strip()


def current_user_context(
    authorization: str | None = Header(default=None, alias="Authorization"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    FastAPI dependency to get the current user context from JWT.

    Usage:
        @router.get("/protected")
        def protected_endpoint(ctx = Depends(current_user_context)):
            user_id = ctx["sub"]
            ...

    Returns:
        Dict with: sub (user_id), email, role, department
    """
    # Import here to avoid circular imports
    from rest_api.repositories import UserRepository

    token = get_bearer_token(authorization)
    payload = verify_jwt(token)

    user = UserRepository(db).find_active(payload["sub"])
    if user is None:
        raise UnauthorizedError(ErrorMessages.NOT_AUTHENTICATED, user_id=payload["sub"])

    return {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "department": user.department,
    }


def require_hotel_access(db: Session, ctx: dict[str, Any], hotel_id: str) -> None:
    """
    Verify that the caller holds a grant on the hotel.

    Raises:
        ForbiddenError: If no hotel_users row links the caller to the hotel.
    """
    from rest_api.repositories import HotelMembershipRepository

    if not HotelMembershipRepository(db).has_grant(ctx["sub"], hotel_id):
        raise ForbiddenError(
            detail=ErrorMessages.NO_HOTEL_ACCESS,
            user_id=ctx["sub"],
            hotel_id=hotel_id,
        )


def require_department(ctx: dict[str, Any], department: str) -> None:
    """
    Verify that the caller is staff working in `department` (or both).

    Raises:
        ForbiddenError: If the caller is not staff of that department.
    """
    if ctx.get("role") != "staff":
        logger.info("Non-staff user tried to read a department dashboard", user_id=ctx.get("sub"))
        raise ForbiddenError(f"access the {department} dashboard", user_id=ctx.get("sub"))

    if ctx.get("department") not in (department, StaffDepartment.BOTH):
        raise ForbiddenError(
            f"access the {department} dashboard",
            user_id=ctx.get("sub"),
            user_department=ctx.get("department"),
        )
