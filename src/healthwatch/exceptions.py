# src/healthwatch/exceptions.py

"""
Service-level errors for endpoint management.

Routes translate these into HTTP responses using ``status_code``.
Anything that is not an ``EndpointServiceError`` is treated as unexpected.
"""

from __future__ import annotations


class EndpointServiceError(RuntimeError):
    """Base exception for endpoint directory failures."""

    status_code = 500


class ValidationError(EndpointServiceError):
    """Raised when caller input is missing or malformed."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundError(EndpointServiceError):
    """Raised when an operation targets an endpoint that does not exist."""

    status_code = 404

    def __init__(self, owner_id: str, endpoint_id: str) -> None:
        super().__init__(f"Endpoint {endpoint_id} not found")
        self.owner_id = owner_id
        self.endpoint_id = endpoint_id
