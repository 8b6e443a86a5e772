"""Unit tests for JWT decoding and authentication dependencies."""

import time
from typing import Any
from unittest.mock import patch

import pytest
from fastapi import HTTPException
from jose import jwt

from src.api.deps import get_admin_user, get_current_user
from src.api.middleware.auth import AuthError, AuthErrorCode, decode_jwt
from src.api.middleware.error_handler import ForbiddenError
from src.schemas.auth import TokenPayload, UserContext

USER_ID = "550e8400-e29b-41d4-a716-446655440000"


class TestDecodeJWT:
    """Tests for decode_jwt function."""

    def test_decode_jwt_with_valid_token(self, token_factory: Any) -> None:
        """Test decode_jwt successfully decodes a valid token."""
        payload = decode_jwt(token_factory())

        assert payload.sub == USER_ID
        assert payload.email == "buyer@example.com"
        assert payload.role is None

    def test_role_read_from_app_metadata(self, token_factory: Any) -> None:
        """Test the application role comes from app_metadata, not the top-level role."""
        payload = decode_jwt(token_factory(role="admin"))

        assert payload.role == "admin"
        assert payload.to_user_context().is_admin is True

    def test_unknown_role_maps_to_user(self, token_factory: Any) -> None:
        """Test any role other than admin is treated as a plain user."""
        context = decode_jwt(token_factory(role="superuser")).to_user_context()

        assert context.role == "user"
        assert context.is_admin is False

    def test_decode_jwt_with_expired_token(self, token_factory: Any) -> None:
        """Test decode_jwt raises AuthError for expired token."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token_factory(exp_offset=-3600))

        assert exc_info.value.code == AuthErrorCode.TOKEN_EXPIRED

    def test_decode_jwt_with_invalid_signature(self, token_factory: Any) -> None:
        """Test decode_jwt raises AuthError for a token signed with another secret."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token_factory(secret="wrong-secret"))

        assert exc_info.value.code == AuthErrorCode.INVALID_SIGNATURE

    def test_decode_jwt_with_malformed_token(self) -> None:
        """Test decode_jwt raises AuthError for malformed token."""
        with pytest.raises(AuthError) as exc_info:
            decode_jwt("not-a-valid-jwt-token")

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    def test_decode_jwt_missing_sub_claim(self) -> None:
        """Test decode_jwt raises AuthError when sub claim is missing."""
        now = int(time.time())
        token = jwt.encode({"exp": now + 3600, "iat": now}, "test-jwt-secret", algorithm="HS256")

        with pytest.raises(AuthError) as exc_info:
            decode_jwt(token)

        assert exc_info.value.code == AuthErrorCode.INVALID_TOKEN

    @patch("src.api.middleware.auth.get_settings")
    def test_missing_secret_rejects_everything(self, mock_settings: Any, token_factory: Any) -> None:
        """Test no token is accepted when the JWT secret is not configured."""
        mock_settings.return_value.supabase_jwt_secret = ""

        with pytest.raises(AuthError):
            decode_jwt(token_factory())


class TestGetCurrentUser:
    """Tests for get_current_user dependency."""

    @pytest.mark.asyncio
    @patch("src.api.deps.decode_jwt")
    async def test_extracts_user_context_correctly(self, mock_decode: Any) -> None:
        """Test get_current_user extracts UserContext from valid token."""
        mock_decode.return_value = TokenPayload(
            sub=USER_ID,
            email="test@example.com",
            role="admin",
            exp=int(time.time()) + 3600,
            iat=int(time.time()),
        )

        user = await get_current_user("Bearer valid-token")

        assert isinstance(user, UserContext)
        assert str(user.user_id) == USER_ID
        assert user.role == "admin"

    @pytest.mark.asyncio
    async def test_missing_header_is_401(self) -> None:
        """Test a missing Authorization header is rejected."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_wrong_scheme_is_401(self) -> None:
        """Test a non-Bearer header is rejected."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user("Basic abc")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token_is_401(self, token_factory: Any) -> None:
        """Test an expired token is rejected with a specific message."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(f"Bearer {token_factory(exp_offset=-10)}")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Token has expired"


class TestGetAdminUser:
    """Tests for get_admin_user dependency."""

    @pytest.mark.asyncio
    async def test_admin_passes(self, admin: UserContext) -> None:
        assert await get_admin_user(admin) is admin

    @pytest.mark.asyncio
    async def test_user_forbidden(self, user: UserContext) -> None:
        with pytest.raises(ForbiddenError):
            await get_admin_user(user)
