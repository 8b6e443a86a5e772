"""Application configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Supabase credentials are only required when the Supabase storage
    backend is selected.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="storefront-backend", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated list of allowed CORS origins",
    )

    # Storage
    storage_backend: Literal["supabase", "memory"] = Field(
        default="supabase",
        description="Persistence backend for carts, orders, payments and stock",
    )
    supabase_url: str = Field(default="", description="Supabase project URL")
    supabase_secret_key: str = Field(default="", description="Supabase secret key for backend operations")

    # Auth
    supabase_jwt_secret: str = Field(default="", description="Supabase JWT secret for HS256 token verification")
    jwt_audience: str | None = Field(default=None, description="Expected JWT audience (None skips the check)")

    # Payment gateway
    payment_gateway_url: str = Field(
        default="https://sandbox.vnpayment.vn/paymentv2/vpcpay.html",
        description="Hosted payment page URL the customer is redirected to",
    )
    payment_gateway_api_url: str = Field(
        default="https://sandbox.vnpayment.vn/merchant_webapi/api/transaction",
        description="Server-to-server gateway API URL (refunds)",
    )
    payment_gateway_merchant_code: str = Field(default="", description="Merchant terminal code issued by the gateway")
    payment_gateway_hash_secret: str = Field(default="", description="Shared secret for request/callback signatures")
    payment_gateway_return_url: str = Field(
        default="http://localhost:8080/api/v1/payment/callback",
        description="URL the gateway redirects the customer back to",
    )
    payment_gateway_version: str = Field(default="2.1.0", description="Gateway protocol version")
    payment_gateway_locale: str = Field(default="vn", description="Locale of the hosted payment page")
    payment_gateway_currency: str = Field(default="VND", description="Currency code sent to the gateway")
    payment_gateway_hash_algorithm: Literal["sha256", "sha512"] = Field(
        default="sha256",
        description="HMAC digest used for signing",
    )
    payment_gateway_timeout_seconds: float = Field(default=10.0, description="Timeout for outbound gateway calls")
    payment_gateway_max_attempts: int = Field(default=3, description="Attempts for retryable gateway calls")
    payment_gateway_default_ip: str = Field(
        default="127.0.0.1",
        description="Origin IP sent when the client address cannot be determined",
    )

    # Email (Resend)
    resend_api_key: str = Field(default="", description="Resend API key for sending emails")
    email_from_address: str = Field(
        default="Storefront <noreply@example.com>",
        description="From address for transactional emails",
    )

    # Frontend
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL for email links",
    )

    @model_validator(mode="after")
    def require_supabase_credentials(self) -> "Settings":
        """Fail fast when the Supabase backend is selected without credentials."""
        if self.storage_backend == "supabase" and not (self.supabase_url and self.supabase_secret_key):
            raise ValueError(
                "SUPABASE_URL and SUPABASE_SECRET_KEY are required when STORAGE_BACKEND=supabase"
            )
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_gateway_configured(self) -> bool:
        """Check if the payment gateway credentials are present."""
        return bool(self.payment_gateway_merchant_code and self.payment_gateway_hash_secret)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
