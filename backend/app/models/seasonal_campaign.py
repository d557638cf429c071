"""SeasonalCampaign model for time-boxed discounts."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid


class RecurrenceType(str, Enum):
    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class SeasonalCampaign(Base):
    __tablename__ = "seasonal_campaigns"

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
    banner_text = Column(String(500), nullable=True)

    starts_at = Column(DateTime(timezone=True), nullable=False)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    is_recurring = Column(Boolean, nullable=False, default=False)
    recurrence_type = Column(String(20), nullable=True)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(MoneyType, nullable=False)
    max_discount_amount = Column(MoneyType, nullable=True)
    min_order_amount = Column(MoneyType, nullable=False, default=0)
    applicable_services = Column(JSON, nullable=True)

    promo_code = Column(String(50), nullable=True)
    stackable = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    times_applied = Column(Integer, nullable=False, default=0)
    total_discount_given = Column(MoneyType, nullable=False, default=0)

    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
