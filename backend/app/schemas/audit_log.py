"""Pydantic schemas for AuditLog."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """One audit trail entry for a discount definition or approval request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    organization_id: UUID
    resource_type: str
    resource_id: UUID
    action: str
    changes: dict[str, Any]
    actor_type: str
    actor_id: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="metadata_")
    created_at: datetime
