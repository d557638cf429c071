"""AutomaticRule model for rule-based discounts."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid


class RuleType(str, Enum):
    ORDER_MINIMUM = "order_minimum"
    SERVICE_QUANTITY = "service_quantity"
    SERVICE_COMBO = "service_combo"
    FIRST_ORDER = "first_order"
    REPEAT_CUSTOMER = "repeat_customer"
    REFERRAL = "referral"
    SEASONAL = "seasonal"
    DAY_OF_WEEK = "day_of_week"
    BULK_VOLUME = "bulk_volume"


class AutomaticRule(Base):
    """A discount applied automatically when its typed condition matches the order."""

    __tablename__ = "automatic_rules"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(Integer, nullable=False, default=0, index=True)

    rule_type = Column(String(50), nullable=False, index=True)
    conditions = Column(JSON, nullable=False, default=dict)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(MoneyType, nullable=False)
    max_discount_amount = Column(MoneyType, nullable=True)

    stackable = Column(Boolean, nullable=False, default=False)
    stack_with_codes = Column(Boolean, nullable=False, default=True)

    starts_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    times_applied = Column(Integer, nullable=False, default=0)
    total_discount_given = Column(MoneyType, nullable=False, default=0)

    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
