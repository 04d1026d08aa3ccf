# src/healthwatch/repositories/__init__.py
from .endpoint_repository import EndpointRepository

__all__ = [
    "EndpointRepository",
]
