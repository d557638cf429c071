"""DiscountApprovalRequest model for the discount approval workflow."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text, func, text

from app.core.database import Base
from app.models.shared import (
    DEFAULT_ORGANIZATION_ID,
    MoneyType,
    PercentType,
    UUIDType,
    generate_uuid,
    utc_now,
)


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    ESCALATED = "escalated"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# Escalated requests are still awaiting a decision.
OPEN_APPROVAL_STATUSES = (ApprovalStatus.PENDING.value, ApprovalStatus.ESCALATED.value)
TERMINAL_APPROVAL_STATUSES = (
    ApprovalStatus.APPROVED.value,
    ApprovalStatus.REJECTED.value,
    ApprovalStatus.EXPIRED.value,
    ApprovalStatus.CANCELLED.value,
)

_OPEN_ONLY = text("status IN ('pending', 'escalated')")


class DiscountApprovalRequest(Base):
    """A composed discount held until a reviewer decides on it."""

    __tablename__ = "discount_approval_requests"
    __table_args__ = (
        # At most one open request per order.
        Index(
            "uq_discount_approval_requests_open_order",
            "organization_id",
            "order_id",
            unique=True,
            sqlite_where=_OPEN_ONLY,
            postgresql_where=_OPEN_ONLY,
        ),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    order_id = Column(UUIDType, nullable=False, index=True)
    customer_id = Column(UUIDType, nullable=True)
    order_amount = Column(MoneyType, nullable=False)

    requested_by = Column(String(255), nullable=False, index=True)
    requester_role = Column(String(50), nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    requested_discount_amount = Column(MoneyType, nullable=False)
    requested_discount_percent = Column(PercentType, nullable=False)
    reason = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING.value, index=True)
    assigned_to = Column(String(255), nullable=True)

    reviewed_by = Column(String(255), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewer_notes = Column(Text, nullable=True)

    counter_discount_type = Column(String(20), nullable=True)
    counter_discount_value = Column(MoneyType, nullable=True)
    approved_discount_amount = Column(MoneyType, nullable=True)

    escalated_at = Column(DateTime(timezone=True), nullable=True)
    escalated_to = Column(String(255), nullable=True)

    reservation_id = Column(
        UUIDType, ForeignKey("discount_code_usages.id", ondelete="RESTRICT"), nullable=True
    )
    # Inputs needed to re-run composition when a reviewer approves.
    evaluation = Column(JSON, nullable=False, default=dict)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
