"""
Refresh orchestration for monitored endpoints.

Probes a set of endpoints concurrently, reconciles each result into the
stored record, persists it and notifies for unhealthy endpoints.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List

from opentelemetry import trace
from prometheus_client import Counter

from healthwatch.models.endpoint import Endpoint, EndpointStatus, DEFAULT_TIMEOUT_MS
from healthwatch.repositories.endpoint_repository import EndpointRepository
from healthwatch.services.endpoint_probe import ProbeResult, probe_endpoint
from healthwatch.services.endpoint_reconciler import reconcile
from healthwatch.services.notification_service import NotificationService

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

endpoint_refreshes_total = Counter(
    'healthwatch_endpoint_refreshes_total',
    'Total number of endpoint refresh cycles',
    ['status', 'transition']
)

Probe = Callable[[str, int], Awaitable[ProbeResult]]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EndpointRefreshService:
    """Runs probe -> reconcile -> persist -> notify for sets of endpoints."""

    def __init__(
        self,
        repository: EndpointRepository,
        notifier: NotificationService,
        probe: Probe = probe_endpoint,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.notifier = notifier
        self.probe = probe
        self.clock = clock

    async def refresh_for_owner(self, owner_id: str) -> List[Endpoint]:
        """Refresh every endpoint registered by one owner."""
        with tracer.start_as_current_span("refresh.owner") as span:
            span.set_attribute("owner.id", owner_id)
            endpoints = self.repository.list_by_owner(owner_id)
            return await self.refresh(endpoints)

    async def refresh_all(self) -> List[Endpoint]:
        """Refresh every endpoint across all owners."""
        with tracer.start_as_current_span("refresh.all"):
            endpoints = self.repository.list_all()
            return await self.refresh(endpoints)

    async def refresh(self, endpoints: Iterable[Endpoint]) -> List[Endpoint]:
        """
        Refresh a set of endpoints concurrently.

        Every endpoint runs to completion. A storage or notification failure
        on one endpoint is logged and the first one is re-raised once all of
        them have finished.

        Returns:
            Updated endpoints, in input order
        """
        endpoints = list(endpoints)
        if not endpoints:
            return []

        endpoint_ids = [endpoint.endpoint_id for endpoint in endpoints]
        logger.info(f"Refreshing {len(endpoints)} endpoints")
        results = await asyncio.gather(
            *(self._refresh_endpoint(endpoint) for endpoint in endpoints),
            return_exceptions=True,
        )

        failures = [
            (endpoint_id, result)
            for endpoint_id, result in zip(endpoint_ids, results)
            if isinstance(result, BaseException)
        ]
        for endpoint_id, error in failures:
            logger.error(
                "Refresh failed for endpoint %s: %s",
                endpoint_id, error,
                exc_info=(type(error), error, error.__traceback__),
            )
        if failures:
            raise failures[0][1]

        return list(results)

    async def _refresh_endpoint(self, endpoint: Endpoint) -> Endpoint:
        with tracer.start_as_current_span("refresh.endpoint") as span:
            span.set_attribute("endpoint.id", endpoint.endpoint_id)
            span.set_attribute("owner.id", endpoint.owner_id)

            timeout_ms = endpoint.timeout_ms or DEFAULT_TIMEOUT_MS
            probe_result = await self.probe(endpoint.url, timeout_ms)

            previous_status = endpoint.status
            outcome = reconcile(endpoint, probe_result, self.clock())

            updated = self.repository.update(
                endpoint.owner_id,
                endpoint.endpoint_id,
                outcome.changes,
            )

            transition = "changed" if previous_status != probe_result.status else "unchanged"
            endpoint_refreshes_total.labels(
                status=probe_result.status.value,
                transition=transition,
            ).inc()
            span.set_attribute("endpoint.status", probe_result.status.value)

            if transition == "changed":
                logger.info(
                    "Endpoint %s changed status: %s -> %s",
                    endpoint.endpoint_id,
                    getattr(previous_status, "value", previous_status),
                    probe_result.status.value,
                )

            if outcome.notify:
                await self.notifier.notify_unhealthy(updated, probe_result)

            return updated


async def run_scheduled_refresh(refresh_service: EndpointRefreshService) -> Dict[str, int]:
    """
    Scheduled entry point: refresh every endpoint and summarise.

    Returns:
        {"refreshed_count": int, "unhealthy_count": int}
    """
    try:
        updated = await refresh_service.refresh_all()
    except Exception:
        logger.exception("Failed to refresh endpoints on schedule")
        raise

    unhealthy_count = sum(
        1 for endpoint in updated if endpoint.status == EndpointStatus.UNHEALTHY
    )

    logger.info(
        "Completed scheduled endpoint refresh: refreshed=%d unhealthy=%d",
        len(updated), unhealthy_count
    )

    return {
        "refreshed_count": len(updated),
        "unhealthy_count": unhealthy_count,
    }
