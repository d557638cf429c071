"""Audit trail for discount definitions and approval decisions."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from app.repositories.audit_log_repository import AuditLogRepository


class AuditResource(str, Enum):
    DISCOUNT_CODE = "discount_code"
    AUTOMATIC_RULE = "automatic_rule"
    LOYALTY_PROGRAM = "loyalty_program"
    VOLUME_TIER = "volume_tier"
    SEASONAL_CAMPAIGN = "seasonal_campaign"
    DISCOUNT_SETTINGS = "discount_settings"
    APPROVAL_REQUEST = "approval_request"


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def snapshot(obj: Any, fields: list[str]) -> dict[str, Any]:
    """JSON-ready copy of selected attributes of a model instance."""
    return {name: _json_value(getattr(obj, name, None)) for name in fields}


class AuditService:
    """Service for recording audit trail entries."""

    def __init__(self, db: Session):
        self.repo = AuditLogRepository(db)

    def log_create(
        self,
        resource_type: AuditResource,
        resource_id: UUID,
        organization_id: UUID,
        actor_type: str = "user",
        actor_id: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.repo.create(
            organization_id=organization_id,
            resource_type=resource_type.value,
            resource_id=resource_id,
            action="created",
            changes={key: _json_value(value) for key, value in (data or {}).items()},
            actor_type=actor_type,
            actor_id=actor_id,
        )

    def log_update(
        self,
        resource_type: AuditResource,
        resource_id: UUID,
        organization_id: UUID,
        old_data: dict[str, Any],
        new_data: dict[str, Any],
        actor_type: str = "user",
        actor_id: str | None = None,
    ) -> None:
        """Log the fields that differ between two snapshots; nothing if none do."""
        changes: dict[str, Any] = {}
        for key in sorted(set(old_data) | set(new_data)):
            old_val = _json_value(old_data.get(key))
            new_val = _json_value(new_data.get(key))
            if old_val != new_val:
                changes[key] = {"old": old_val, "new": new_val}
        if not changes:
            return
        self.repo.create(
            organization_id=organization_id,
            resource_type=resource_type.value,
            resource_id=resource_id,
            action="updated",
            changes=changes,
            actor_type=actor_type,
            actor_id=actor_id,
        )

    def log_status_change(
        self,
        resource_type: AuditResource,
        resource_id: UUID,
        organization_id: UUID,
        old_status: str,
        new_status: str,
        actor_type: str = "system",
        actor_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.repo.create(
            organization_id=organization_id,
            resource_type=resource_type.value,
            resource_id=resource_id,
            action="status_changed",
            changes={"status": {"old": old_status, "new": new_status}},
            actor_type=actor_type,
            actor_id=actor_id,
            metadata=(
                {key: _json_value(value) for key, value in metadata.items()} if metadata else None
            ),
        )
