# src/healthwatch/repositories/endpoint_repository.py

"""
Endpoint data access layer.

``update`` takes a tri-state patch: a key present with a value sets the
column, a key present with ``None`` clears it, and a key that is absent
leaves the stored value untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from healthwatch.exceptions import NotFoundError
from healthwatch.models.endpoint import Endpoint

logger = logging.getLogger(__name__)

_IDENTITY_FIELDS = frozenset({"owner_id", "endpoint_id"})


class EndpointRepository:
    """
    Data access methods for the Endpoint model, scoped to one session.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, owner_id: str, endpoint_id: str) -> Endpoint | None:
        """
        Get an endpoint by its (owner_id, endpoint_id) key.

        Returns:
            Endpoint or None
        """
        return self.db.get(Endpoint, (owner_id, endpoint_id))

    def list_by_owner(self, owner_id: str) -> list[Endpoint]:
        """Get all endpoints registered by one owner."""
        return (
            self.db.query(Endpoint)
            .filter(Endpoint.owner_id == owner_id)
            .order_by(Endpoint.created_at.asc(), Endpoint.endpoint_id.asc())
            .all()
        )

    def list_all(self) -> list[Endpoint]:
        """Get every endpoint across all owners."""
        return (
            self.db.query(Endpoint)
            .order_by(Endpoint.owner_id.asc(), Endpoint.created_at.asc())
            .all()
        )

    def create(self, endpoint: Endpoint) -> Endpoint:
        """
        Persist a new endpoint.

        Args:
            endpoint: Fully populated, transient Endpoint

        Returns:
            The stored endpoint with server defaults loaded
        """
        self.db.add(endpoint)
        self.db.commit()
        self.db.refresh(endpoint)

        logger.debug("Stored endpoint %s for owner %s", endpoint.endpoint_id, endpoint.owner_id)
        return endpoint

    def update(
        self,
        owner_id: str,
        endpoint_id: str,
        changes: Mapping[str, Any],
    ) -> Endpoint:
        """
        Apply a partial update to an endpoint.

        Args:
            owner_id: Owner of the endpoint
            endpoint_id: Endpoint identifier
            changes: Fields to set; ``None`` values clear the column

        Returns:
            Updated endpoint

        Raises:
            NotFoundError: if the endpoint does not exist
        """
        endpoint = self.get(owner_id, endpoint_id)
        if endpoint is None:
            raise NotFoundError(owner_id, endpoint_id)

        for key, value in changes.items():
            if key in _IDENTITY_FIELDS:
                raise ValueError(f"{key} cannot be changed")
            if not hasattr(Endpoint, key):
                raise ValueError(f"Unknown endpoint field: {key}")
            setattr(endpoint, key, value)

        try:
            self.db.commit()
        except Exception:
            # leave the session usable for the next write
            self.db.rollback()
            raise
        self.db.refresh(endpoint)

        return endpoint

    def delete(self, owner_id: str, endpoint_id: str) -> None:
        """Delete one endpoint. Missing endpoints are ignored."""
        endpoint = self.get(owner_id, endpoint_id)
        if endpoint is None:
            return

        self.db.delete(endpoint)
        self.db.commit()

    def delete_batch(self, endpoints: Iterable[Endpoint]) -> None:
        """Delete several endpoints in a single commit."""
        endpoints = list(endpoints)
        if not endpoints:
            return

        for endpoint in endpoints:
            self.db.delete(endpoint)
        self.db.commit()

        logger.info("Deleted %d endpoints", len(endpoints))
