"""
Tests for JWT authentication and access checks.
"""

import jwt
import pytest

from tests.conftest import bearer
from shared.config.constants import ErrorMessages
from shared.security.auth import (
    require_department,
    require_hotel_access,
    sign_access_token,
    sign_jwt,
    verify_jwt,
)
from shared.utils.exceptions import ForbiddenError, UnauthorizedError


class TestTokens:
    """Test token signing and verification."""

    def test_roundtrip_claims(self):
        payload = verify_jwt(sign_access_token("user-1", "cook@test.com"))
        assert payload["sub"] == "user-1"
        assert payload["email"] == "cook@test.com"
        assert payload["type"] == "access"

    def test_expired_token(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_jwt(sign_access_token("user-1", ttl_seconds=-10))
        assert exc_info.value.detail == ErrorMessages.TOKEN_EXPIRED

    def test_foreign_signature(self):
        token = jwt.encode({"sub": "user-1"}, "not-the-secret", algorithm="HS256")
        with pytest.raises(UnauthorizedError) as exc_info:
            verify_jwt(token)
        assert exc_info.value.detail == ErrorMessages.INVALID_TOKEN

    def test_missing_subject(self):
        with pytest.raises(UnauthorizedError):
            verify_jwt(sign_jwt({"email": "x@test.com"}))

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(UnauthorizedError):
            verify_jwt(sign_jwt({"sub": "user-1"}, token_type="refresh"))


class TestAuthenticatedRequests:
    """current_user_context through a protected endpoint."""

    def _get(self, client, hotel, headers):
        return client.get("/api/kitchen/stats", params={"hotel_id": hotel.id}, headers=headers)

    def test_valid_token(self, client, seed_hotel, kitchen_headers):
        assert self._get(client, seed_hotel, kitchen_headers).status_code == 200

    def test_missing_header(self, client, seed_hotel):
        response = self._get(client, seed_hotel, {})
        assert response.status_code == 401
        assert response.json()["detail"] == ErrorMessages.NOT_AUTHENTICATED

    def test_malformed_header(self, client, seed_hotel, kitchen_user):
        token = sign_access_token(kitchen_user.id)
        assert self._get(client, seed_hotel, {"Authorization": f"Token {token}"}).status_code == 401

    def test_expired_token(self, client, seed_hotel, kitchen_user):
        token = sign_access_token(kitchen_user.id, ttl_seconds=-10)
        assert self._get(client, seed_hotel, {"Authorization": f"Bearer {token}"}).status_code == 401

    def test_inactive_user(self, client, db_session, seed_hotel, kitchen_user):
        headers = bearer(kitchen_user)
        kitchen_user.is_active = False
        db_session.commit()

        assert self._get(client, seed_hotel, headers).status_code == 401

    def test_unknown_user(self, client, seed_hotel):
        headers = {"Authorization": f"Bearer {sign_access_token('ghost')}"}
        assert self._get(client, seed_hotel, headers).status_code == 401


class TestAccessChecks:
    def test_department_staff(self):
        require_department({"sub": "u", "role": "staff", "department": "kitchen"}, "kitchen")
        require_department({"sub": "u", "role": "staff", "department": "both"}, "bar")

    @pytest.mark.parametrize(
        "ctx",
        [
            {"sub": "u", "role": "staff", "department": "bar"},
            {"sub": "u", "role": "staff", "department": None},
            {"sub": "u", "role": "manager", "department": "kitchen"},
            {"sub": "u", "role": "admin", "department": "both"},
        ],
    )
    def test_department_rejected(self, ctx):
        with pytest.raises(ForbiddenError):
            require_department(ctx, "kitchen")

    def test_hotel_grant(self, db_session, seed_hotel, other_hotel, kitchen_user):
        ctx = {"sub": kitchen_user.id}
        require_hotel_access(db_session, ctx, seed_hotel.id)
        with pytest.raises(ForbiddenError):
            require_hotel_access(db_session, ctx, other_hotel.id)
