"""LoyaltyProgram model: one points program per organization."""

from typing import Any

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, func

from app.core.database import Base
from app.models.shared import DEFAULT_ORGANIZATION_ID, PercentType, UUIDType, generate_uuid

DEFAULT_LOYALTY_TIERS: list[dict[str, Any]] = [
    {"name": "Bronze", "min_points": 0, "discount_percent": "0", "perks": []},
    {
        "name": "Silver",
        "min_points": 1000,
        "discount_percent": "5",
        "perks": ["priority_scheduling"],
    },
    {
        "name": "Gold",
        "min_points": 5000,
        "discount_percent": "10",
        "perks": ["priority_scheduling", "free_inspection"],
    },
    {
        "name": "Platinum",
        "min_points": 10000,
        "discount_percent": "15",
        "perks": ["priority_scheduling", "free_inspection", "dedicated_rep"],
    },
]


class LoyaltyProgram(Base):
    __tablename__ = "loyalty_programs"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    organization_id = Column(
        UUIDType,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        default=DEFAULT_ORGANIZATION_ID,
    )
    name = Column(String(255), nullable=False, default="Loyalty Rewards")
    is_active = Column(Boolean, nullable=False, default=True)

    points_per_dollar = Column(Numeric(8, 2), nullable=False, default=1)
    points_for_signup = Column(Integer, nullable=False, default=0)
    points_for_referral = Column(Integer, nullable=False, default=500)

    points_to_dollar_ratio = Column(Numeric(10, 4), nullable=False, default=0.01)
    min_points_to_redeem = Column(Integer, nullable=False, default=500)
    max_redemption_percent = Column(PercentType, nullable=False, default=50)

    tiers = Column(JSON, nullable=False, default=lambda: list(DEFAULT_LOYALTY_TIERS))
    stackable = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
