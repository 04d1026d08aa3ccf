"""
Endpoint model for monitored HTTP targets.

Each row is one URL registered by an owner, together with the result of
the most recent health probe. Rows are keyed by (owner_id, endpoint_id).
"""

import enum

from sqlalchemy import Column, String, Integer, DateTime, Enum
from healthwatch.db.database import Base
from healthwatch.models.mixins import TimestampMixin

DEFAULT_TIMEOUT_MS = 5000
# Largest value the Integer column holds
MAX_TIMEOUT_MS = 2**31 - 1


class EndpointStatus(str, enum.Enum):
    """Health state of a monitored endpoint."""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


class Endpoint(Base, TimestampMixin):
    """
    A monitored endpoint and its last known health.

    ``status`` is ``unknown`` until the first probe. ``error_message`` is only
    set while the endpoint is unhealthy. ``status_since`` moves on status
    transitions only, ``last_checked_at`` on every probe.
    """
    __tablename__ = "endpoints"

    owner_id = Column(String(255), primary_key=True)
    endpoint_id = Column(String(64), primary_key=True)

    tenant_id = Column(String(255), nullable=False, index=True)
    category = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    url = Column(String, nullable=False)
    timeout_ms = Column(Integer, nullable=False, default=DEFAULT_TIMEOUT_MS)

    status = Column(
        Enum(
            EndpointStatus,
            name="endpoint_status",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=EndpointStatus.UNKNOWN,
    )
    status_code = Column(Integer, nullable=True)
    response_time_ms = Column(Integer, nullable=True)
    error_message = Column(String, nullable=True)

    status_since = Column(DateTime(timezone=True), nullable=True)
    last_checked_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Endpoint(owner_id={self.owner_id}, endpoint_id={self.endpoint_id}, status={self.status})>"
