"""LoyaltyTransaction model: immutable signed point deltas."""

from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, UUIDType, generate_uuid


class LoyaltyTransactionType(str, Enum):
    EARN_PURCHASE = "earn_purchase"
    EARN_SIGNUP = "earn_signup"
    EARN_REFERRAL = "earn_referral"
    EARN_BONUS = "earn_bonus"
    REDEEM = "redeem"
    EXPIRE = "expire"
    ADJUST = "adjust"


class LoyaltyTransaction(Base):
    __tablename__ = "loyalty_transactions"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    customer_loyalty_id = Column(
        UUIDType, ForeignKey("customer_loyalty.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    transaction_type = Column(String(20), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    balance_after = Column(Integer, nullable=False)
    order_id = Column(UUIDType, nullable=True)
    description = Column(Text, nullable=True)
    created_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
