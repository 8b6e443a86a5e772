"""Schemas shared by the health endpoints and the error handler."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Liveness probe response. Never touches storage or the gateway."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Current health status")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    version: str = Field(default="0.1.0", description="API version")


class CheckResult(BaseModel):
    """Result of a single dependency check in the readiness probe."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(description="Dependency name, e.g. database")
    healthy: bool = Field(description="Whether the dependency answered")
    latency_ms: float | None = Field(default=None, description="Check round trip in milliseconds")
    error: str | None = Field(default=None, description="Failure reason if unhealthy")


class ReadinessResponse(BaseModel):
    """Readiness probe response. Unhealthy means the API answers 503."""

    model_config = ConfigDict(from_attributes=True)

    status: HealthStatus = Field(description="Overall readiness status")
    storage_backend: str | None = Field(default=None, description="Configured storage backend")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    checks: list[CheckResult] = Field(default_factory=list, description="Individual check results")


class RouteLatency(BaseModel):
    """Latency figures for one "METHOD /path" route template."""

    count: int
    avg_ms: float
    p95_ms: float


class LatencyStatsResponse(BaseModel):
    """Rolling request latency window for this process."""

    total_requests: int = Field(description="Requests in the current window")
    error_rate: float = Field(description="Share of 5xx responses in the window")
    avg_latency_ms: float
    p50_latency_ms: float
    p95_latency_ms: float
    p99_latency_ms: float
    routes: dict[str, RouteLatency] = Field(default_factory=dict, description="Per-route breakdown")


class ErrorDetail(BaseModel):
    """One entry of an error's details list, e.g. a failing field or product line."""

    model_config = ConfigDict(from_attributes=True)

    loc: list[str] | None = Field(default=None, description="Location of the error, e.g. field path")
    msg: str = Field(description="Human-readable message")
    type: str = Field(description="Error type identifier")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response.

    error carries the machine-readable kind (not_found, insufficient_stock,
    illegal_transition, signature_mismatch, upstream_unavailable, ...) so
    clients can branch without parsing message.
    """

    model_config = ConfigDict(from_attributes=True)

    error: str = Field(description="Error kind")
    message: str = Field(description="Human-readable error description")
    details: list[ErrorDetail] | None = Field(default=None, description="Additional error details")
    retryable: bool = Field(default=False, description="True when the same request may succeed later")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")

    @classmethod
    def from_exception(
        cls,
        error_type: str,
        message: str,
        details: list[dict[str, Any]] | None = None,
        request_id: str | None = None,
        retryable: bool = False,
    ) -> "ErrorResponse":
        """Build the response body from an error's fields.

        Args:
            error_type: Error kind.
            message: Human-readable error description.
            details: Optional list of detail dictionaries.
            request_id: Optional request ID for tracing.
            retryable: Whether the client may retry unchanged.

        Returns:
            ErrorResponse: Formatted error body.
        """
        error_details = None
        if details:
            error_details = [
                ErrorDetail(
                    loc=[str(part) for part in d["loc"]] if d.get("loc") else None,
                    msg=d.get("msg", str(d)),
                    type=d.get("type", "error"),
                )
                for d in details
            ]

        return cls(
            error=error_type,
            message=message,
            details=error_details,
            retryable=retryable,
            request_id=request_id,
        )
