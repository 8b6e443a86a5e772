"""Unit tests for configuration module."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from src.core.config import Settings, get_settings


class TestSettings:
    """Tests for Settings class."""

    def test_settings_loads_from_environment(self) -> None:
        """Test that Settings loads values from environment variables."""
        env_vars = {
            "APP_NAME": "test-app",
            "APP_ENV": "testing",
            "DEBUG": "true",
            "HOST": "127.0.0.1",
            "PORT": "9000",
            "STORAGE_BACKEND": "supabase",
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_SECRET_KEY": "test-secret-key",
            "PAYMENT_GATEWAY_HASH_ALGORITHM": "sha512",
            "PAYMENT_GATEWAY_TIMEOUT_SECONDS": "2.5",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()

            assert settings.app_name == "test-app"
            assert settings.app_env == "testing"
            assert settings.debug is True
            assert settings.host == "127.0.0.1"
            assert settings.port == 9000
            assert settings.storage_backend == "supabase"
            assert settings.supabase_url == "https://test.supabase.co"
            assert settings.payment_gateway_hash_algorithm == "sha512"
            assert settings.payment_gateway_timeout_seconds == 2.5

    def test_settings_cors_origins_list(self) -> None:
        """Test that CORS origins are correctly parsed into a list."""
        env_vars = {"CORS_ORIGINS": "http://localhost:3000, http://example.com , ,http://test.com"}

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()

            assert settings.cors_origins_list == [
                "http://localhost:3000",
                "http://example.com",
                "http://test.com",
            ]

    def test_supabase_backend_requires_credentials(self) -> None:
        """Test that selecting Supabase without credentials fails fast."""
        env_vars = {
            "STORAGE_BACKEND": "supabase",
            "SUPABASE_URL": "",
            "SUPABASE_SECRET_KEY": "",
        }

        with patch.dict(os.environ, env_vars, clear=False):
            with pytest.raises(ValidationError):
                Settings()

    def test_memory_backend_needs_no_credentials(self) -> None:
        """Test that the memory backend starts without Supabase settings."""
        env_vars = {"STORAGE_BACKEND": "memory", "SUPABASE_URL": "", "SUPABASE_SECRET_KEY": ""}

        with patch.dict(os.environ, env_vars, clear=False):
            settings = Settings()
            assert settings.storage_backend == "memory"

    def test_unknown_hash_algorithm_rejected(self) -> None:
        """Test that only sha256 and sha512 are accepted for signing."""
        with patch.dict(os.environ, {"PAYMENT_GATEWAY_HASH_ALGORITHM": "md5"}, clear=False):
            with pytest.raises(ValidationError):
                Settings()

    def test_hash_algorithm_defaults_to_sha256(self) -> None:
        """Test the default signing digest."""
        env = {k: v for k, v in os.environ.items() if k != "PAYMENT_GATEWAY_HASH_ALGORITHM"}
        with patch.dict(os.environ, env, clear=True):
            assert Settings().payment_gateway_hash_algorithm == "sha256"

    def test_is_gateway_configured(self) -> None:
        """Test gateway readiness requires merchant code and secret."""
        with patch.dict(
            os.environ,
            {"PAYMENT_GATEWAY_MERCHANT_CODE": "M1", "PAYMENT_GATEWAY_HASH_SECRET": ""},
            clear=False,
        ):
            assert Settings().is_gateway_configured is False

        with patch.dict(
            os.environ,
            {"PAYMENT_GATEWAY_MERCHANT_CODE": "M1", "PAYMENT_GATEWAY_HASH_SECRET": "s"},
            clear=False,
        ):
            assert Settings().is_gateway_configured is True

    def test_is_production(self) -> None:
        """Test production detection."""
        with patch.dict(os.environ, {"APP_ENV": "production"}, clear=False):
            assert Settings().is_production is True


class TestGetSettings:
    """Tests for get_settings function."""

    def test_get_settings_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same cached instance."""
        assert get_settings() is get_settings()

    def test_cache_clear_reloads(self) -> None:
        """Test that clearing the cache picks up new environment values."""
        first = get_settings()
        with patch.dict(os.environ, {"APP_NAME": "reloaded"}, clear=False):
            get_settings.cache_clear()
            assert get_settings().app_name == "reloaded"
        assert first.app_name != "reloaded"
