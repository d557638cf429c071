"""Discount settings API endpoints: stacking policy and approval configuration."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_organization
from app.core.database import get_db
from app.models.discount_settings import DiscountSettings
from app.repositories.discount_settings_repository import DiscountSettingsRepository
from app.schemas.discount_settings import (
    DiscountSettingsResponse,
    DiscountSettingsUpsert,
    RoleLimit,
)
from app.services.audit_service import AuditResource, AuditService, snapshot
from app.services.discounts.catalog import approval_policy, stacking_policy

router = APIRouter()

_AUDITED_FIELDS = [
    "allow_code_rule_stacking",
    "max_combined_percent",
    "require_approval",
    "role_limits",
    "escalation_after_hours",
    "auto_reject_after_hours",
    "default_approver_id",
    "escalation_approver_id",
    "approval_threshold_percent",
    "approval_threshold_amount",
    "approval_for_orders_over",
]


def _effective_settings(row: DiscountSettings | None) -> DiscountSettingsResponse:
    """Settings as the engine applies them, with configuration defaults filled in."""
    stacking = stacking_policy(row)
    approval = approval_policy(row)
    return DiscountSettingsResponse(
        id=row.id if row is not None else None,  # type: ignore[arg-type]
        allow_code_rule_stacking=stacking.allow_code_rule_stacking,
        max_combined_percent=stacking.max_combined_percent,
        require_approval=approval.require_approval,
        role_limits={
            role: RoleLimit(max_percent=limit.max_percent, max_amount=limit.max_amount)
            for role, limit in approval.role_limits.items()
        },
        escalation_after_hours=approval.escalation_after_hours,
        auto_reject_after_hours=approval.auto_reject_after_hours,
        default_approver_id=approval.default_approver_id,
        escalation_approver_id=approval.escalation_approver_id,
        approval_threshold_percent=approval.threshold_percent,
        approval_threshold_amount=approval.threshold_amount,
        approval_for_orders_over=approval.orders_over,
    )


@router.get(
    "/",
    response_model=DiscountSettingsResponse,
    summary="Get discount settings",
)
async def get_discount_settings(
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountSettingsResponse:
    return _effective_settings(DiscountSettingsRepository(db).get_by_organization(organization_id))


@router.put(
    "/",
    response_model=DiscountSettingsResponse,
    summary="Update discount settings",
    responses={422: {"description": "Validation error"}},
)
async def upsert_discount_settings(
    data: DiscountSettingsUpsert,
    db: Session = Depends(get_db),
    organization_id: UUID = Depends(get_current_organization),
) -> DiscountSettingsResponse:
    """Create or replace the organization's discount settings."""
    repo = DiscountSettingsRepository(db)
    existing = repo.get_by_organization(organization_id)
    old_data = snapshot(existing, _AUDITED_FIELDS) if existing is not None else None
    row = repo.upsert(organization_id, data)
    audit = AuditService(db)
    if old_data is None:
        audit.log_create(
            AuditResource.DISCOUNT_SETTINGS,
            row.id,  # type: ignore[arg-type]
            organization_id,
            data=snapshot(row, _AUDITED_FIELDS),
        )
    else:
        audit.log_update(
            AuditResource.DISCOUNT_SETTINGS,
            row.id,  # type: ignore[arg-type]
            organization_id,
            old_data=old_data,
            new_data=snapshot(row, _AUDITED_FIELDS),
        )
    return _effective_settings(row)
