"""
Reconciles a probe result into an endpoint's persisted state.

The result is a patch for EndpointRepository.update plus the decision
whether the unhealthy notification should fire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from healthwatch.models.endpoint import EndpointStatus
from healthwatch.services.endpoint_probe import ProbeResult


@dataclass
class Reconciliation:
    """
    changes:
        Next-state fields for the endpoint. Keys mapped to None clear the
        stored value, so a recovered endpoint loses its stale error.
    notify:
        True whenever the next status is unhealthy.
    """
    changes: Dict[str, Any] = field(default_factory=dict)
    notify: bool = False


def reconcile(prior, probe_result: ProbeResult, now: datetime) -> Reconciliation:
    """
    Merge a probe result with the prior endpoint record.

    Args:
        prior: Current endpoint record (anything with status and status_since)
        probe_result: Outcome of the latest probe
        now: Timestamp of this refresh

    Returns:
        Reconciliation with the patch and the notification decision
    """
    next_status = probe_result.status
    unhealthy = next_status == EndpointStatus.UNHEALTHY
    status_changed = prior.status != next_status

    changes = {
        "status": next_status,
        "status_code": probe_result.status_code,
        "response_time_ms": probe_result.response_time_ms,
        "error_message": probe_result.error_message if unhealthy else None,
        "last_checked_at": now,
        "status_since": now if status_changed else prior.status_since,
    }

    return Reconciliation(changes=changes, notify=unhealthy)


def describe_issue(probe_result: ProbeResult) -> str:
    """Human readable reason an endpoint was reported unhealthy."""
    if probe_result.error_message:
        return probe_result.error_message
    if probe_result.status_code:
        return f"Received status code {probe_result.status_code}"
    return "Unknown issue"
