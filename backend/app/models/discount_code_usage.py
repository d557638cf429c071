"""DiscountCodeUsage model: the append-only reservation ledger for promo codes."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, String

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid, utc_now


class UsageStatus(str, Enum):
    RESERVED = "reserved"
    COMMITTED = "committed"
    RELEASED = "released"


CLAIMING_USAGE_STATUSES = (UsageStatus.RESERVED.value, UsageStatus.COMMITTED.value)


class DiscountCodeUsage(Base):
    """One claim on a promo code slot for one order."""

    __tablename__ = "discount_code_usages"
    __table_args__ = (
        Index("ix_discount_code_usages_code_status", "discount_code_id", "status"),
        Index("ix_discount_code_usages_code_customer", "discount_code_id", "customer_id"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    discount_code_id = Column(
        UUIDType, ForeignKey("discount_codes.id", ondelete="RESTRICT"), nullable=False
    )
    order_id = Column(UUIDType, nullable=False, index=True)
    customer_id = Column(UUIDType, nullable=True)
    customer_email = Column(String(255), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=UsageStatus.RESERVED.value)
    order_amount = Column(MoneyType, nullable=False, default=0)
    discount_amount = Column(MoneyType, nullable=False, default=0)

    reserved_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    committed_at = Column(DateTime(timezone=True), nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)
    release_reason = Column(String(50), nullable=True)
