"""DiscountCode model for promo codes."""

from enum import Enum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid, utc_now


class DiscountType(str, Enum):
    PERCENT = "percent"
    FIXED = "fixed"


class DiscountCode(Base):
    """A promo code customers can submit with an order.

    ``uses_claimed`` counts outstanding reservations plus committed redemptions and is only
    changed by the usage ledger through conditional updates. ``times_used`` counts committed
    redemptions and is what administrators see.
    """

    __tablename__ = "discount_codes"
    __table_args__ = (
        UniqueConstraint("organization_id", "code", name="uq_discount_codes_org_code"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    code = Column(String(50), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(MoneyType, nullable=False)
    max_discount_amount = Column(MoneyType, nullable=True)

    min_order_amount = Column(MoneyType, nullable=False, default=0)
    max_uses_total = Column(Integer, nullable=True)
    max_uses_per_customer = Column(Integer, nullable=True, default=1)

    applicable_services = Column(JSON, nullable=True)
    applicable_tiers = Column(JSON, nullable=True)
    new_customers_only = Column(Boolean, nullable=False, default=False)
    existing_customers_only = Column(Boolean, nullable=False, default=False)
    specific_customer_ids = Column(JSON, nullable=True)

    starts_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    uses_claimed = Column(Integer, nullable=False, default=0)
    times_used = Column(Integer, nullable=False, default=0)
    total_discount_given = Column(MoneyType, nullable=False, default=0)

    created_by = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
