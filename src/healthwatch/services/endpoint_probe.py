"""
Endpoint probe.

Makes a single bounded-time HTTP GET against a monitored URL and classifies
the outcome. Failures of any kind come back as an unhealthy ProbeResult;
nothing is raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from opentelemetry import trace
from prometheus_client import Counter, Histogram

from healthwatch.models.endpoint import EndpointStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Prometheus metrics
endpoint_probes_total = Counter(
    'healthwatch_endpoint_probes_total',
    'Total number of endpoint probes',
    ['status']
)

endpoint_probe_duration_seconds = Histogram(
    'healthwatch_endpoint_probe_duration_seconds',
    'Wall-clock duration of endpoint probes in seconds',
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0]
)


@dataclass
class ProbeResult:
    """
    Outcome of one probe.

    status_code is None when no response was received.
    error_message is only set when status is unhealthy.
    """
    status: EndpointStatus
    response_time_ms: int
    status_code: Optional[int] = None
    error_message: Optional[str] = None

    @property
    def is_healthy(self) -> bool:
        return self.status == EndpointStatus.HEALTHY


def effective_timeout_ms(timeout_ms: Any) -> int:
    """Whole milliseconds, at least 1. Anything not positive and finite becomes 1."""
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, (int, float)):
        return 1
    if not math.isfinite(timeout_ms) or timeout_ms <= 0:
        return 1
    return max(1, int(timeout_ms))


async def probe_endpoint(url: str, timeout_ms: Any) -> ProbeResult:
    """
    Check a single URL.

    Args:
        url: Target URL
        timeout_ms: Budget for the whole attempt in milliseconds

    Returns:
        ProbeResult, healthy only for a 2xx response
    """
    with tracer.start_as_current_span("probe.check_endpoint") as span:
        timeout = effective_timeout_ms(timeout_ms)
        span.set_attribute("endpoint.url", url)
        span.set_attribute("probe.timeout_ms", timeout)

        status_code = None
        error_message = None
        start_time = time.perf_counter()

        try:
            # trust_env=False keeps HTTP(S)_PROXY settings out of the probe path
            async with httpx.AsyncClient(
                timeout=timeout / 1000.0,
                follow_redirects=True,
                trust_env=False,
            ) as client:
                response = await asyncio.wait_for(client.get(url), timeout=timeout / 1000.0)
                status_code = response.status_code

            if not 200 <= status_code < 300:
                error_message = f"Non-2xx status code: {status_code}"

        except (httpx.TimeoutException, asyncio.TimeoutError):
            error_message = f"Request timed out after {timeout} ms"
            logger.warning(f"GET {url} timed out after {timeout} ms")

        except Exception as e:
            error_message = str(e) or e.__class__.__name__
            logger.warning(f"GET {url} failed: {error_message}")

        response_time_ms = int((time.perf_counter() - start_time) * 1000)
        status = EndpointStatus.UNHEALTHY if error_message else EndpointStatus.HEALTHY

        span.set_attribute("probe.status", status.value)
        if status_code is not None:
            span.set_attribute("http.status_code", status_code)

        endpoint_probes_total.labels(status=status.value).inc()
        endpoint_probe_duration_seconds.observe(response_time_ms / 1000.0)

        logger.debug(
            f"GET {url} -> {status.value} ({status_code}) in {response_time_ms}ms"
        )

        return ProbeResult(
            status=status,
            status_code=status_code,
            response_time_ms=response_time_ms,
            error_message=error_message,
        )
