"""Repository for the audit trail of discount definitions and approvals."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Query, Session

from app.core.sorting import apply_order_by
from app.models.audit_log import AuditLog


class AuditLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        organization_id: UUID,
        resource_type: str,
        resource_id: UUID,
        action: str,
        changes: dict[str, Any],
        actor_type: str,
        actor_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog:
        audit_log = AuditLog(
            organization_id=organization_id,
            resource_type=resource_type,
            resource_id=resource_id,
            action=action,
            changes=changes,
            actor_type=actor_type,
            actor_id=actor_id,
            metadata_=metadata,
        )
        self.db.add(audit_log)
        self.db.commit()
        self.db.refresh(audit_log)
        return audit_log

    def _filtered(
        self,
        organization_id: UUID,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        action: str | None = None,
        actor_type: str | None = None,
    ) -> Query[AuditLog]:
        query = self.db.query(AuditLog).filter(AuditLog.organization_id == organization_id)
        if resource_type is not None:
            query = query.filter(AuditLog.resource_type == resource_type)
        if resource_id is not None:
            query = query.filter(AuditLog.resource_id == resource_id)
        if action is not None:
            query = query.filter(AuditLog.action == action)
        if actor_type is not None:
            query = query.filter(AuditLog.actor_type == actor_type)
        return query

    def get_all(
        self,
        organization_id: UUID,
        skip: int = 0,
        limit: int = 100,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        action: str | None = None,
        actor_type: str | None = None,
        order_by: str | None = None,
    ) -> list[AuditLog]:
        query = self._filtered(organization_id, resource_type, resource_id, action, actor_type)
        query = apply_order_by(query, AuditLog, order_by)
        return query.offset(skip).limit(limit).all()

    def count(
        self,
        organization_id: UUID,
        resource_type: str | None = None,
        resource_id: UUID | None = None,
        action: str | None = None,
        actor_type: str | None = None,
    ) -> int:
        return self._filtered(
            organization_id, resource_type, resource_id, action, actor_type
        ).count()
