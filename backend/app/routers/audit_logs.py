"""Audit log API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.audit_log import AuditLog
from app.repositories.audit_log_repository import AuditLogRepository
from app.schemas.audit_log import AuditLogResponse
from app.services.audit_service import AuditResource

router = APIRouter()


@router.get(
    "/",
    response_model=list[AuditLogResponse],
    summary="List audit logs",
)
async def list_audit_logs(
    response: Response,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    order_by: str | None = Query(default=None),
    resource_type: AuditResource | None = None,
    action: str | None = None,
    actor_type: str | None = None,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[AuditLog]:
    """List audit logs with optional filters, newest first."""
    repo = AuditLogRepository(db)
    filters = {
        "resource_type": resource_type.value if resource_type is not None else None,
        "action": action,
        "actor_type": actor_type,
    }
    response.headers["X-Total-Count"] = str(repo.count(organization_id, **filters))
    return repo.get_all(organization_id, skip=skip, limit=limit, order_by=order_by, **filters)


@router.get(
    "/{resource_type}/{resource_id}",
    response_model=list[AuditLogResponse],
    summary="Get audit trail for a resource",
)
async def get_resource_audit_trail(
    resource_type: AuditResource,
    resource_id: UUID,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> list[AuditLog]:
    return AuditLogRepository(db).get_all(
        organization_id,
        skip=skip,
        limit=limit,
        resource_type=resource_type.value,
        resource_id=resource_id,
    )
