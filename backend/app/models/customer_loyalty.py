"""CustomerLoyalty model: a customer's running points balance."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, MoneyType, UUIDType, generate_uuid


class CustomerLoyalty(Base):
    """Per-customer loyalty account.

    ``current_points`` always equals the sum of the customer's transaction deltas and is only
    changed by the usage ledger. The tier is derived from it, never stored.
    """

    __tablename__ = "customer_loyalty"
    __table_args__ = (
        UniqueConstraint("organization_id", "customer_id", name="uq_customer_loyalty_org_customer"),
        CheckConstraint("current_points >= 0", name="ck_customer_loyalty_points_non_negative"),
    )

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    customer_id = Column(UUIDType, nullable=False, index=True)

    current_points = Column(Integer, nullable=False, default=0)
    total_points_earned = Column(Integer, nullable=False, default=0)
    total_points_redeemed = Column(Integer, nullable=False, default=0)

    total_orders = Column(Integer, nullable=False, default=0)
    total_spent = Column(MoneyType, nullable=False, default=0)
    first_order_at = Column(DateTime(timezone=True), nullable=True)
    last_order_at = Column(DateTime(timezone=True), nullable=True)

    referral_code = Column(String(20), unique=True, nullable=False)
    referred_by_code = Column(String(20), nullable=True)
    referrals_count = Column(Integer, nullable=False, default=0)

    enrolled_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
