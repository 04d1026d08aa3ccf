# src/healthwatch/api/routes/tenants.py

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from healthwatch.api.dependencies.owner import get_endpoint_service, get_owner_id
from healthwatch.api.routes.endpoints import raise_for_service_error
from healthwatch.exceptions import EndpointServiceError
from healthwatch.services.endpoint_service import EndpointService

router = APIRouter(prefix="/tenants", tags=["Tenants"])


# --------------------------
# Pydantic Models
# --------------------------
class DeleteTenantResponse(BaseModel):
    tenant_id: str
    deleted_count: int


# --------------------------
# DELETE /tenants/{tenant_id}
# --------------------------
@router.delete("/{tenant_id}", response_model=DeleteTenantResponse)
def delete_tenant(
    tenant_id: str,
    owner_id: str = Depends(get_owner_id),
    service: EndpointService = Depends(get_endpoint_service),
):
    """Delete every endpoint the owner registered under this tenant."""
    try:
        deleted_count = service.delete_tenant(owner_id, tenant_id)
    except EndpointServiceError as exc:
        raise_for_service_error(exc)

    return DeleteTenantResponse(tenant_id=tenant_id.strip(), deleted_count=deleted_count)
