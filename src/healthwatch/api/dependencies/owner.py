from fastapi import Depends, Header, HTTPException, status
from typing import Optional
from sqlalchemy.orm import Session

from healthwatch.db.database import get_db
from healthwatch.repositories.endpoint_repository import EndpointRepository
from healthwatch.services.endpoint_service import EndpointService
from healthwatch.services.notification_service import NotificationService
from healthwatch.services.refresh_service import EndpointRefreshService


def get_owner_id(x_owner_id: Optional[str] = Header(None)) -> str:
    """
    Extract the authenticated owner from the X-Owner-ID header.
    Required for all owner-scoped routes.
    """
    if not x_owner_id or not x_owner_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )

    return x_owner_id.strip()


def get_endpoint_service(db: Session = Depends(get_db)) -> EndpointService:
    """Build the endpoint service and its collaborators for one request."""
    repository = EndpointRepository(db)
    refresh_service = EndpointRefreshService(repository, NotificationService())
    return EndpointService(repository, refresh_service)
