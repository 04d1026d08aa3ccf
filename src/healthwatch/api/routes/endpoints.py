"""
API routes for managing monitored endpoints.

Endpoints:
- POST /endpoints - Register a new endpoint to monitor
- GET /endpoints - List the owner's endpoints (?refresh=true probes them first)
- PATCH /endpoints/{endpoint_id} - Update name, url or timeout
- DELETE /endpoints/{endpoint_id} - Remove an endpoint
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

from healthwatch.api.dependencies.owner import get_endpoint_service, get_owner_id
from healthwatch.exceptions import EndpointServiceError
from healthwatch.models.endpoint import EndpointStatus
from healthwatch.services.endpoint_service import EndpointService
from opentelemetry import trace
import logging

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

router = APIRouter(prefix="/endpoints", tags=["endpoints"])


# Request/Response Models

class CreateEndpointRequest(BaseModel):
    """Request to register a new endpoint."""
    tenant_id: str
    category: str
    name: str
    url: str
    timeout_ms: Optional[float] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "tenant_id": "acme",
                "category": "payments",
                "name": "Checkout API",
                "url": "https://api.example.com/health",
                "timeout_ms": 5000
            }
        }
    )


class UpdateEndpointRequest(BaseModel):
    """Request to update an endpoint. Omitted fields are left unchanged."""
    name: Optional[str] = None
    url: Optional[str] = None
    timeout_ms: Optional[float] = None


class EndpointResponse(BaseModel):
    """Response model for an endpoint."""
    owner_id: str
    endpoint_id: str
    tenant_id: str
    category: str
    name: str
    url: str
    timeout_ms: int
    status: EndpointStatus
    status_code: Optional[int] = None
    response_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    status_since: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def raise_for_service_error(exc: EndpointServiceError):
    """Translate a service error into its HTTP classification."""
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


# Endpoints

@router.post("", response_model=EndpointResponse, status_code=status.HTTP_201_CREATED)
def create_endpoint(
    request: CreateEndpointRequest,
    owner_id: str = Depends(get_owner_id),
    service: EndpointService = Depends(get_endpoint_service),
):
    """Register a new endpoint. It stays in the 'unknown' status until refreshed."""
    with tracer.start_as_current_span("api.create_endpoint") as span:
        span.set_attribute("owner.id", owner_id)
        try:
            return service.create_endpoint(
                owner_id,
                tenant_id=request.tenant_id,
                category=request.category,
                name=request.name,
                url=request.url,
                timeout_ms=request.timeout_ms,
            )
        except EndpointServiceError as exc:
            raise_for_service_error(exc)


@router.get("", response_model=List[EndpointResponse])
async def list_endpoints(
    refresh: bool = Query(False, description="Probe every endpoint before returning"),
    owner_id: str = Depends(get_owner_id),
    service: EndpointService = Depends(get_endpoint_service),
):
    """List all endpoints for the current owner."""
    with tracer.start_as_current_span("api.list_endpoints") as span:
        span.set_attribute("owner.id", owner_id)
        return await service.list_endpoints(owner_id, refresh=refresh)


@router.patch("/{endpoint_id}", response_model=EndpointResponse)
def update_endpoint(
    endpoint_id: str,
    request: UpdateEndpointRequest,
    owner_id: str = Depends(get_owner_id),
    service: EndpointService = Depends(get_endpoint_service),
):
    """
    Update endpoint settings.

    Can update:
    - name
    - url
    - timeout_ms
    """
    with tracer.start_as_current_span("api.update_endpoint") as span:
        span.set_attribute("owner.id", owner_id)
        span.set_attribute("endpoint.id", endpoint_id)
        try:
            return service.update_endpoint(
                owner_id,
                endpoint_id,
                request.model_dump(exclude_unset=True),
            )
        except EndpointServiceError as exc:
            raise_for_service_error(exc)


@router.delete("/{endpoint_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_endpoint(
    endpoint_id: str,
    owner_id: str = Depends(get_owner_id),
    service: EndpointService = Depends(get_endpoint_service),
):
    """Remove an endpoint."""
    with tracer.start_as_current_span("api.delete_endpoint") as span:
        span.set_attribute("owner.id", owner_id)
        try:
            service.delete_endpoint(owner_id, endpoint_id)
        except EndpointServiceError as exc:
            raise_for_service_error(exc)

        return Response(status_code=status.HTTP_204_NO_CONTENT)
