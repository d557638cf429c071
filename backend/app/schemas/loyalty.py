"""Loyalty program, customer loyalty and loyalty transaction schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LoyaltyTier(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    min_points: int = Field(ge=0)
    discount_percent: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    perks: list[str] = Field(default_factory=list)


class LoyaltyProgramUpsert(BaseModel):
    name: str = Field(default="Loyalty Rewards", min_length=1, max_length=255)
    is_active: bool = True
    points_per_dollar: Decimal = Field(default=Decimal("1"), ge=0)
    points_for_signup: int = Field(default=0, ge=0)
    points_for_referral: int = Field(default=500, ge=0)
    points_to_dollar_ratio: Decimal = Field(default=Decimal("0.01"), gt=0)
    min_points_to_redeem: int = Field(default=500, ge=0)
    max_redemption_percent: Decimal = Field(default=Decimal("50"), ge=0, le=100)
    tiers: list[LoyaltyTier] | None = Field(default=None, min_length=1)
    stackable: bool = True

    @model_validator(mode="after")
    def validate_tiers(self) -> Self:
        """Tiers must be listed with strictly ascending thresholds."""
        if self.tiers is None:
            return self
        thresholds = [tier.min_points for tier in self.tiers]
        if any(b <= a for a, b in zip(thresholds, thresholds[1:], strict=False)):
            raise ValueError("Loyalty tiers must have strictly ascending min_points")
        return self


class LoyaltyProgramResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    is_active: bool
    points_per_dollar: Decimal
    points_for_signup: int
    points_for_referral: int
    points_to_dollar_ratio: Decimal
    min_points_to_redeem: int
    max_redemption_percent: Decimal
    tiers: list[LoyaltyTier]
    stackable: bool
    created_at: datetime
    updated_at: datetime


class LoyaltyEnrollRequest(BaseModel):
    customer_id: UUID
    referred_by_code: str | None = Field(default=None, max_length=20)


class LoyaltyEarnRequest(BaseModel):
    customer_id: UUID
    order_amount: Decimal = Field(ge=0)
    order_id: UUID | None = None
    bonus_points: int = Field(default=0, ge=0)


class LoyaltyRedeemRequest(BaseModel):
    customer_id: UUID
    points: int = Field(gt=0)
    order_id: UUID | None = None


class LoyaltyRedeemResponse(BaseModel):
    points_redeemed: int
    discount_value: Decimal
    balance_after: int


class LoyaltyAdjustRequest(BaseModel):
    customer_id: UUID
    points: int
    reason: str = Field(min_length=1, max_length=500)
    adjusted_by: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_points(self) -> Self:
        if self.points == 0:
            raise ValueError("points must be non-zero")
        return self


class CustomerLoyaltyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_id: UUID
    current_points: int
    total_points_earned: int
    total_points_redeemed: int
    total_orders: int
    total_spent: Decimal
    first_order_at: datetime | None = None
    last_order_at: datetime | None = None
    referral_code: str
    referred_by_code: str | None = None
    referrals_count: int
    current_tier: LoyaltyTier | None = None
    enrolled_at: datetime


class LoyaltyTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    customer_loyalty_id: UUID
    transaction_type: str
    points: int
    balance_after: int
    order_id: UUID | None = None
    description: str | None = None
    created_by: str | None = None
    created_at: datetime


class LoyaltyReconciliationResponse(BaseModel):
    customer_id: UUID
    current_points: int
    ledger_points: int
    transaction_count: int
    is_consistent: bool
