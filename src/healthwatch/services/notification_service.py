"""
Notification service for unhealthy endpoints.

Every notification is written to the log. When NOTIFICATION_WEBHOOK_URL is
configured the same payload is also POSTed there as JSON.
"""

import json
import logging
import os
from typing import Optional, Dict, Any

import httpx
from opentelemetry import trace
from prometheus_client import Counter

from healthwatch.models.endpoint import Endpoint
from healthwatch.services.endpoint_probe import ProbeResult
from healthwatch.services.endpoint_reconciler import describe_issue

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Prometheus metrics
notifications_sent_total = Counter(
    'healthwatch_notifications_sent_total',
    'Total number of unhealthy endpoint notifications',
    ['channel']
)


class NotificationService:
    """
    Sends unhealthy endpoint notifications.

    Configuration via environment variables:
    - NOTIFICATION_WEBHOOK_URL: Webhook to POST payloads to (optional)
    - NOTIFICATION_WEBHOOK_TIMEOUT: Webhook timeout in seconds (default: 10)
    """

    def __init__(self, webhook_url: Optional[str] = None, timeout: Optional[float] = None):
        self.webhook_url = webhook_url or os.getenv("NOTIFICATION_WEBHOOK_URL")
        self.timeout = timeout or float(os.getenv("NOTIFICATION_WEBHOOK_TIMEOUT", "10"))

    async def notify_unhealthy(self, endpoint: Endpoint, probe_result: ProbeResult) -> None:
        """
        Report an unhealthy endpoint.

        Args:
            endpoint: The endpoint as persisted after the refresh
            probe_result: The probe outcome that made it unhealthy
        """
        with tracer.start_as_current_span("notification.endpoint_unhealthy") as span:
            span.set_attribute("endpoint.id", endpoint.endpoint_id)
            span.set_attribute("owner.id", endpoint.owner_id)

            payload = self._build_payload(endpoint, probe_result)

            logger.warning(
                "Endpoint unhealthy: %s",
                json.dumps(payload, indent=2, default=str)
            )
            notifications_sent_total.labels(channel="log").inc()

            if self.webhook_url:
                await self._send_webhook(self.webhook_url, payload)
                notifications_sent_total.labels(channel="webhook").inc()

    async def _send_webhook(self, webhook_url: str, payload: Dict[str, Any]) -> None:
        """Send notification via webhook (HTTP POST)."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                webhook_url,
                json=payload,
                headers={"Content-Type": "application/json"}
            )
            response.raise_for_status()

        logger.info(f"Webhook notification sent to {webhook_url}: status {response.status_code}")

    def _build_payload(self, endpoint: Endpoint, probe_result: ProbeResult) -> Dict[str, Any]:
        checked_at = endpoint.last_checked_at
        return {
            "owner_id": endpoint.owner_id,
            "tenant_id": endpoint.tenant_id,
            "endpoint_id": endpoint.endpoint_id,
            "name": endpoint.name,
            "url": endpoint.url,
            "issue": describe_issue(probe_result),
            "checked_at": checked_at.isoformat() if checked_at else None,
        }
