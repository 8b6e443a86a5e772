"""Request timing middleware and rolling latency stats for /health/stats."""

import logging
import re
import time
from collections import defaultdict, deque
from typing import Any, Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

QUIET_PATHS = frozenset({"/health", "/health/ready", "/health/stats"})

_UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


def _percentile(sorted_values: list[float], fraction: float) -> float:
    index = min(int(len(sorted_values) * fraction), len(sorted_values) - 1)
    return round(sorted_values[index], 2)


class LatencyStats:
    """Rolling window of request latencies, grouped by route and status."""

    def __init__(self, max_samples: int = 1000) -> None:
        self._samples: deque[tuple[str, str, int, float]] = deque(maxlen=max_samples)

    def record(self, method: str, path: str, status_code: int, latency_ms: float) -> None:
        """Record one finished request."""
        self._samples.append((method, _UUID_PATTERN.sub("{id}", path), status_code, latency_ms))

    def reset(self) -> None:
        self._samples.clear()

    def get_stats(self) -> dict[str, Any]:
        """Aggregate stats over the current window."""
        latencies = sorted(sample[3] for sample in self._samples)
        if not latencies:
            return {
                "total_requests": 0,
                "error_rate": 0.0,
                "avg_latency_ms": 0,
                "p50_latency_ms": 0,
                "p95_latency_ms": 0,
                "p99_latency_ms": 0,
                "routes": {},
            }

        total = len(latencies)
        errors = sum(1 for sample in self._samples if sample[2] >= 500)

        by_route: dict[str, list[float]] = defaultdict(list)
        for method, route, _, latency in self._samples:
            by_route[f"{method} {route}"].append(latency)

        return {
            "total_requests": total,
            "error_rate": round(errors / total, 4),
            "avg_latency_ms": round(sum(latencies) / total, 2),
            "p50_latency_ms": _percentile(latencies, 0.5),
            "p95_latency_ms": _percentile(latencies, 0.95),
            "p99_latency_ms": _percentile(latencies, 0.99),
            "routes": {
                route: {
                    "count": len(values),
                    "avg_ms": round(sum(values) / len(values), 2),
                    "p95_ms": _percentile(sorted(values), 0.95),
                }
                for route, values in by_route.items()
            },
        }


_latency_stats = LatencyStats()


def get_latency_stats() -> LatencyStats:
    """Get the process-wide latency stats."""
    return _latency_stats


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency of every request and record stats.

    Slow requests are elevated to WARNING or ERROR. Health endpoints are
    neither logged nor counted.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500

        if path not in QUIET_PATHS:
            get_latency_stats().record(method, path, status_code, latency_ms)

            log_msg = "%s %s - %d - %.2fms"
            args = (method, path, status_code, latency_ms)
            if status_code >= 500 or latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
                logger.error(log_msg, *args)
            elif latency_ms > SLOW_REQUEST_THRESHOLD_MS or status_code >= 400:
                logger.warning(log_msg, *args)
            else:
                logger.info(log_msg, *args)
