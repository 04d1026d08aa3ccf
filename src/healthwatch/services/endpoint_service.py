"""
Endpoint directory service.

Create, update, delete and list monitored endpoints for an owner, with input
validation. Listing can optionally refresh the owner's endpoints first.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from opentelemetry import trace

from healthwatch.exceptions import NotFoundError, ValidationError
from healthwatch.models.endpoint import (
    Endpoint,
    EndpointStatus,
    DEFAULT_TIMEOUT_MS,
    MAX_TIMEOUT_MS,
)
from healthwatch.repositories.endpoint_repository import EndpointRepository
from healthwatch.services.refresh_service import EndpointRefreshService

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

UPDATABLE_FIELDS = ("name", "url", "timeout_ms")


def _clean_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must be a non-empty string", field=field)
    return value.strip()


def _clean_timeout(value: Any) -> int:
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise ValidationError("timeout_ms must be a positive number", field="timeout_ms")
    if value > MAX_TIMEOUT_MS:
        raise ValidationError(
            f"timeout_ms must not exceed {MAX_TIMEOUT_MS}", field="timeout_ms"
        )
    return max(1, int(value))


class EndpointService:
    """Service for managing an owner's monitored endpoints."""

    def __init__(
        self,
        repository: EndpointRepository,
        refresh_service: Optional[EndpointRefreshService] = None,
    ):
        self.repository = repository
        self.refresh_service = refresh_service

    def create_endpoint(
        self,
        owner_id: str,
        *,
        tenant_id: str,
        category: str,
        name: str,
        url: str,
        timeout_ms: Optional[float] = None,
    ) -> Endpoint:
        """
        Register a new endpoint.

        The endpoint starts in the ``unknown`` status until it is refreshed.

        Raises:
            ValidationError: if a required field is empty or timeout_ms is invalid
        """
        with tracer.start_as_current_span("endpoints.create") as span:
            span.set_attribute("owner.id", owner_id)

            endpoint = Endpoint(
                owner_id=owner_id,
                endpoint_id=str(uuid4()),
                tenant_id=_clean_text(tenant_id, "tenant_id"),
                category=_clean_text(category, "category"),
                name=_clean_text(name, "name"),
                url=_clean_text(url, "url"),
                timeout_ms=DEFAULT_TIMEOUT_MS if timeout_ms is None else _clean_timeout(timeout_ms),
                status=EndpointStatus.UNKNOWN,
                status_since=datetime.now(timezone.utc),
            )

            endpoint = self.repository.create(endpoint)
            span.set_attribute("endpoint.id", endpoint.endpoint_id)

            logger.info(
                "Created endpoint %s (%s) for owner %s",
                endpoint.endpoint_id, endpoint.url, owner_id
            )
            return endpoint

    async def list_endpoints(self, owner_id: str, refresh: bool = False) -> List[Endpoint]:
        """List an owner's endpoints, probing them first when ``refresh`` is set."""
        with tracer.start_as_current_span("endpoints.list") as span:
            span.set_attribute("owner.id", owner_id)
            span.set_attribute("refresh", refresh)

            if refresh:
                if self.refresh_service is None:
                    raise RuntimeError("EndpointService was built without a refresh service")
                return await self.refresh_service.refresh_for_owner(owner_id)

            return self.repository.list_by_owner(owner_id)

    def update_endpoint(
        self,
        owner_id: str,
        endpoint_id: str,
        changes: Mapping[str, Any],
    ) -> Endpoint:
        """
        Update name, url and/or timeout_ms.

        Keys with a None value are treated as not provided.

        Raises:
            ValidationError: if nothing updatable is provided or a value is invalid
            NotFoundError: if the endpoint does not exist
        """
        with tracer.start_as_current_span("endpoints.update") as span:
            span.set_attribute("owner.id", owner_id)
            span.set_attribute("endpoint.id", endpoint_id)

            provided = {
                key: changes[key]
                for key in UPDATABLE_FIELDS
                if changes.get(key) is not None
            }
            if not provided:
                raise ValidationError("At least one of name, url or timeout_ms must be provided")

            validated = {}
            for key, value in provided.items():
                if key == "timeout_ms":
                    validated[key] = _clean_timeout(value)
                else:
                    validated[key] = _clean_text(value, key)

            endpoint = self.repository.get(owner_id, endpoint_id)
            if endpoint is None:
                raise NotFoundError(owner_id, endpoint_id)

            changed = {
                key: value
                for key, value in validated.items()
                if getattr(endpoint, key) != value
            }
            if not changed:
                logger.debug("No endpoint fields changed for %s", endpoint_id)
                return endpoint

            endpoint = self.repository.update(owner_id, endpoint_id, changed)
            logger.info("Updated endpoint %s: %s", endpoint_id, ", ".join(sorted(changed)))
            return endpoint

    def delete_endpoint(self, owner_id: str, endpoint_id: str) -> None:
        """
        Delete one endpoint.

        Raises:
            ValidationError: if endpoint_id is blank
            NotFoundError: if the endpoint does not exist
        """
        with tracer.start_as_current_span("endpoints.delete") as span:
            span.set_attribute("owner.id", owner_id)

            if not isinstance(endpoint_id, str) or not endpoint_id.strip():
                raise ValidationError("endpoint_id is required", field="endpoint_id")
            endpoint_id = endpoint_id.strip()
            span.set_attribute("endpoint.id", endpoint_id)

            if self.repository.get(owner_id, endpoint_id) is None:
                raise NotFoundError(owner_id, endpoint_id)

            self.repository.delete(owner_id, endpoint_id)
            logger.info("Deleted endpoint %s for owner %s", endpoint_id, owner_id)

    def delete_tenant(self, owner_id: str, tenant_id: str) -> int:
        """
        Delete every endpoint of an owner that belongs to ``tenant_id``.

        Returns:
            Number of endpoints deleted (0 when none matched)

        Raises:
            ValidationError: if tenant_id is blank
        """
        with tracer.start_as_current_span("endpoints.delete_tenant") as span:
            span.set_attribute("owner.id", owner_id)

            if not isinstance(tenant_id, str) or not tenant_id.strip():
                raise ValidationError("tenant_id is required", field="tenant_id")
            tenant_id = tenant_id.strip()
            span.set_attribute("tenant.id", tenant_id)

            matches = [
                endpoint
                for endpoint in self.repository.list_by_owner(owner_id)
                if endpoint.tenant_id == tenant_id
            ]
            self.repository.delete_batch(matches)

            logger.info(
                "Deleted %d endpoints for tenant %s (owner %s)",
                len(matches), tenant_id, owner_id
            )
            return len(matches)
