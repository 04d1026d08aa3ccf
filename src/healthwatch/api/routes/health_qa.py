"""
QA target for the endpoint probe.

GET /health-qa picks a random scenario and answers accordingly: 2xx, 3xx,
4xx and 5xx responses, slow responses, a raised error or a hang. Register it
as a monitored endpoint to exercise every classification path.
"""

import asyncio
import logging
import os
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health-qa"])

SLOW_DELAY_SECONDS = float(os.getenv("HEALTH_QA_SLOW_DELAY_SECONDS", "7"))
HANG_SECONDS = float(os.getenv("HEALTH_QA_HANG_SECONDS", "300"))


@dataclass
class Scenario:
    name: str
    kind: str  # "response", "raise" or "hang"
    message: str
    status_code: Optional[int] = None
    delay_seconds: float = 0.0
    headers: Dict[str, str] = field(default_factory=dict)


SCENARIOS = [
    Scenario("fast-success", "response", "Simulated healthy response", 200),
    Scenario(
        "slow-success", "response", "Healthy response after a noticeable delay", 200,
        delay_seconds=SLOW_DELAY_SECONDS,
    ),
    Scenario("created-success", "response", "Simulated resource creation response", 201),
    Scenario("no-content", "response", "Simulated response with no body content", 204),
    Scenario("bad-request", "response", "Simulated 400 Bad Request", 400),
    Scenario("unauthorized", "response", "Simulated 401 Unauthorized", 401),
    Scenario("forbidden", "response", "Simulated 403 Forbidden", 403),
    Scenario("not-found", "response", "Simulated 404 Not Found", 404),
    Scenario("conflict", "response", "Simulated 409 Conflict", 409),
    Scenario("rate-limited", "response", "Simulated 429 Too Many Requests", 429),
    Scenario("server-error", "response", "Simulated 500 Internal Server Error", 500),
    Scenario("bad-gateway", "response", "Simulated 502 Bad Gateway", 502),
    Scenario("service-unavailable", "response", "Simulated 503 Service Unavailable", 503),
    Scenario("gateway-timeout", "response", "Simulated 504 Gateway Timeout response", 504),
    Scenario("teapot", "response", "Simulated 418 I'm a teapot", 418),
    Scenario(
        "redirect", "response", "Simulated redirect to an alternate location", 302,
        headers={"Location": "https://example.com/maintenance"},
    ),
    Scenario("unhandled-exception", "raise", "Simulated unexpected runtime failure"),
    Scenario("timeout", "hang", "Simulated function timeout"),
]


def build_response(scenario: Scenario) -> Response:
    if scenario.status_code == 204:
        return Response(status_code=204, headers=scenario.headers)

    return JSONResponse(
        status_code=scenario.status_code,
        headers=scenario.headers,
        content={
            "outcome": scenario.name,
            "status_code": scenario.status_code,
            "message": scenario.message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get("/health-qa")
async def health_qa():
    """Answer with a randomly chosen simulated outcome."""
    scenario = random.choice(SCENARIOS)
    logger.info("Selected health-qa scenario: %s", scenario.name)

    if scenario.kind == "hang":
        logger.warning("Simulating timeout for /health-qa request")
        await asyncio.sleep(HANG_SECONDS)
        return Response(status_code=504)

    if scenario.kind == "raise":
        logger.error("Raising simulated failure for /health-qa request")
        raise RuntimeError(scenario.message)

    if scenario.delay_seconds:
        await asyncio.sleep(scenario.delay_seconds)

    return build_response(scenario)
