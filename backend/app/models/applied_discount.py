"""AppliedDiscount model: immutable record of a discount applied to an order."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid, utc_now


class DiscountSourceType(str, Enum):
    MANUAL = "manual"
    PROMO_CODE = "promo_code"
    AUTOMATIC_RULE = "automatic_rule"
    LOYALTY = "loyalty"
    VOLUME = "volume"
    SEASONAL = "seasonal"
    REFERRAL = "referral"


class AppliedDiscount(Base):
    __tablename__ = "applied_discounts"
    __table_args__ = (Index("ix_applied_discounts_source", "source_type", "source_id"),)

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

    source_type = Column(String(20), nullable=False)
    source_id = Column(UUIDType, nullable=True)
    source_name = Column(String(255), nullable=False)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(MoneyType, nullable=False)
    discount_amount = Column(MoneyType, nullable=False)
    order_position = Column(Integer, nullable=False, default=1)
    applied_to_subtotal = Column(MoneyType, nullable=False)

    approval_request_id = Column(
        UUIDType, ForeignKey("discount_approval_requests.id", ondelete="RESTRICT"), nullable=True
    )
    applied_by = Column(String(255), nullable=True)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
