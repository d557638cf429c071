"""DiscountSettings model: per-organization stacking policy and approval configuration."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, func

from app.core.database import Base
from app.models.shared import (
    DEFAULT_ORGANIZATION_ID,
    MoneyType,
    PercentType,
    UUIDType,
    generate_uuid,
)


class DiscountSettings(Base):
    __tablename__ = "discount_settings"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        default=DEFAULT_ORGANIZATION_ID,
    )

    # Stacking policy
    allow_code_rule_stacking = Column(Boolean, nullable=False, default=True)
    max_combined_percent = Column(PercentType, nullable=False, default=50)

    # Approval workflow
    require_approval = Column(Boolean, nullable=False, default=True)
    role_limits = Column(JSON, nullable=False, default=dict)
    escalation_after_hours = Column(Integer, nullable=False, default=24)
    auto_reject_after_hours = Column(Integer, nullable=False, default=72)
    default_approver_id = Column(String(255), nullable=True)
    escalation_approver_id = Column(String(255), nullable=True)

    # Org-wide thresholds checked after the requester's role limit; null disables each
    approval_threshold_percent = Column(PercentType, nullable=True)
    approval_threshold_amount = Column(MoneyType, nullable=True)
    approval_for_orders_over = Column(MoneyType, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
