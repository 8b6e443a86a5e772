"""Unit tests for FastAPI dependency injection functions."""

from unittest.mock import MagicMock

from src.api.deps import get_client_ip


def make_request(headers: dict[str, str] | None = None, host: str | None = "198.51.100.7") -> MagicMock:
    request = MagicMock()
    request.headers = headers or {}
    request.client = MagicMock(host=host) if host else None
    return request


class TestGetClientIp:
    """Tests for get_client_ip dependency."""

    def test_first_forwarded_hop_wins(self) -> None:
        request = make_request({"x-forwarded-for": "203.0.113.9, 10.0.0.1"})

        assert get_client_ip(request) == "203.0.113.9"

    def test_falls_back_to_socket_peer(self) -> None:
        assert get_client_ip(make_request()) == "198.51.100.7"

    def test_falls_back_to_configured_default(self) -> None:
        from src.core.config import get_settings

        assert get_client_ip(make_request(host=None)) == get_settings().payment_gateway_default_ip
