"""Payment gateway configuration and server-to-server HTTP client."""

import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.core.config import get_settings

logger = logging.getLogger(__name__)

# Latency thresholds for logging (milliseconds)
SLOW_CALL_THRESHOLD_MS = 2000
VERY_SLOW_CALL_THRESHOLD_MS = 5000


class GatewayUnavailableError(Exception):
    """The gateway could not be reached or answered with a server error."""


@dataclass(frozen=True)
class GatewayConfig:
    """Merchant credentials and protocol constants for the hosted payment page."""

    payment_url: str
    api_url: str
    merchant_code: str
    hash_secret: str
    return_url: str
    version: str = "2.1.0"
    locale: str = "vn"
    currency: str = "VND"
    hash_algorithm: str = "sha256"
    timeout_seconds: float = 10.0
    max_attempts: int = 3
    retry_min_wait_seconds: float = 0.5
    retry_max_wait_seconds: float = 4.0

    @classmethod
    def from_settings(cls) -> "GatewayConfig":
        """Create config from application settings."""
        settings = get_settings()
        return cls(
            payment_url=settings.payment_gateway_url,
            api_url=settings.payment_gateway_api_url,
            merchant_code=settings.payment_gateway_merchant_code,
            hash_secret=settings.payment_gateway_hash_secret,
            return_url=settings.payment_gateway_return_url,
            version=settings.payment_gateway_version,
            locale=settings.payment_gateway_locale,
            currency=settings.payment_gateway_currency,
            hash_algorithm=settings.payment_gateway_hash_algorithm,
            timeout_seconds=settings.payment_gateway_timeout_seconds,
            max_attempts=settings.payment_gateway_max_attempts,
        )


class PaymentGatewayClient:
    """HTTP client for the gateway's merchant API with timing and retry.

    Transport failures, timeouts and 5xx answers are retried with
    exponential backoff and finally surface as GatewayUnavailableError.
    Anything else the gateway returns is handed back to the caller as JSON.
    """

    def __init__(self, config: GatewayConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    async def post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON payload to the merchant API.

        Args:
            payload: Signed request body.

        Returns:
            dict: Decoded JSON response.

        Raises:
            GatewayUnavailableError: If every attempt failed to get an answer.
        """
        command = payload.get("vnp_Command", "unknown")
        start_time = time.perf_counter()
        error_msg = None

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(GatewayUnavailableError),
                stop=stop_after_attempt(self.config.max_attempts),
                wait=wait_exponential(
                    multiplier=1,
                    min=self.config.retry_min_wait_seconds,
                    max=self.config.retry_max_wait_seconds,
                ),
                reraise=True,
            ):
                with attempt:
                    return await self._post_once(payload)

        except GatewayUnavailableError as e:
            error_msg = str(e)
            logger.error(
                "Gateway %s failed after %d attempt(s): %s",
                command,
                self.config.max_attempts,
                error_msg,
            )
            raise

        finally:
            latency_ms = (time.perf_counter() - start_time) * 1000
            log_msg = f"Gateway call: command={command}, latency={latency_ms:.2f}ms"
            if error_msg:
                logger.error(log_msg + f", error={error_msg}")
            elif latency_ms > VERY_SLOW_CALL_THRESHOLD_MS:
                logger.warning(f"VERY SLOW gateway call: {log_msg}")
            elif latency_ms > SLOW_CALL_THRESHOLD_MS:
                logger.warning(f"SLOW gateway call: {log_msg}")
            else:
                logger.info(log_msg)

        raise GatewayUnavailableError("No attempt was made")

    async def _post_once(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.config.timeout_seconds,
            ) as client:
                response = await client.post(self.config.api_url, json=payload)
        except httpx.TimeoutException as e:
            raise GatewayUnavailableError(f"Gateway timed out: {e}") from e
        except httpx.TransportError as e:
            raise GatewayUnavailableError(f"Gateway unreachable: {e}") from e

        if response.status_code >= 500:
            raise GatewayUnavailableError(f"Gateway returned HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise GatewayUnavailableError("Gateway returned a non-JSON response") from e


def get_gateway_client() -> PaymentGatewayClient:
    """Create a gateway client from current settings."""
    return PaymentGatewayClient(GatewayConfig.from_settings())
