"""Pytest configuration and fixtures."""

import os
import time
from collections.abc import Generator
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from jose import jwt

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("PAYMENT_GATEWAY_MERCHANT_CODE", "TESTMERC")
os.environ.setdefault("PAYMENT_GATEWAY_HASH_SECRET", "test-hash-secret")
os.environ.setdefault("PAYMENT_GATEWAY_URL", "https://pay.example.test/vpcpay.html")
os.environ.setdefault("PAYMENT_GATEWAY_API_URL", "https://pay.example.test/api/transaction")
os.environ.setdefault("RESEND_API_KEY", "")

TEST_JWT_SECRET = "test-jwt-secret"
USER_ID = "550e8400-e29b-41d4-a716-446655440000"
OTHER_USER_ID = "550e8400-e29b-41d4-a716-446655440001"
ADMIN_ID = "550e8400-e29b-41d4-a716-4466554400ad"


def make_token(
    sub: str = USER_ID,
    email: str | None = "buyer@example.com",
    role: str | None = None,
    exp_offset: int = 3600,
    secret: str = TEST_JWT_SECRET,
) -> str:
    """Mint an HS256 token shaped like a Supabase access token."""
    now = int(time.time())
    payload: dict[str, Any] = {
        "sub": sub,
        "email": email,
        "role": "authenticated",
        "exp": now + exp_offset,
        "iat": now,
        "aud": "authenticated",
        "iss": "https://test.supabase.co/auth/v1",
        "app_metadata": {"role": role} if role else {},
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub: str = USER_ID, role: str | None = None) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub=sub, role=role)}"}


@pytest.fixture(autouse=True)
def reset_caches() -> Generator[None, None, None]:
    """Give every test fresh settings and an empty in-memory store."""
    from src.api.middleware.latency_logging import get_latency_stats
    from src.core.config import get_settings
    from src.core.storage import get_memory_store, get_repositories

    get_settings.cache_clear()
    get_repositories.cache_clear()
    get_memory_store.cache_clear()
    get_latency_stats().reset()
    yield
    get_settings.cache_clear()
    get_repositories.cache_clear()
    get_memory_store.cache_clear()


@pytest.fixture
def store() -> Any:
    """The in-memory store backing the app for this test."""
    from src.core.storage import get_memory_store

    return get_memory_store()


@pytest.fixture
def repositories(store: Any) -> Any:
    from src.core.storage import get_repositories

    return get_repositories()


@pytest.fixture
def product(store: Any) -> dict[str, Any]:
    """A product with price 100.00 and 5 units in stock."""
    return store.add_product("Desk lamp", Decimal("100.00"), 5)


@pytest.fixture
def user() -> Any:
    from src.schemas.auth import UserContext

    return UserContext(user_id=USER_ID, email="buyer@example.com", role="user")


@pytest.fixture
def other_user() -> Any:
    from src.schemas.auth import UserContext

    return UserContext(user_id=OTHER_USER_ID, email="other@example.com", role="user")


@pytest.fixture
def admin() -> Any:
    from src.schemas.auth import UserContext

    return UserContext(user_id=ADMIN_ID, email="admin@example.com", role="admin")


@pytest.fixture
def token_factory() -> Any:
    """make_token, for tests that need custom claims."""
    return make_token


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers(USER_ID)


@pytest.fixture
def other_headers() -> dict[str, str]:
    return auth_headers(OTHER_USER_ID)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth_headers(ADMIN_ID, role="admin")


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
