"""SeasonalCampaign schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.discount_code import DiscountType
from app.models.seasonal_campaign import RecurrenceType
from app.schemas.discount_code import normalize_code


class SeasonalCampaignCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    banner_text: str | None = Field(default=None, max_length=500)
    starts_at: datetime
    ends_at: datetime
    is_recurring: bool = False
    recurrence_type: RecurrenceType | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    applicable_services: list[str] | None = None
    promo_code: str | None = Field(default=None, min_length=3, max_length=50)
    stackable: bool = False
    created_by: str | None = Field(default=None, max_length=255)

    @field_validator("promo_code")
    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        return normalize_code(value) if value is not None else None

    @model_validator(mode="after")
    def validate_window(self) -> Self:
        if self.ends_at <= self.starts_at:
            raise ValueError("ends_at must be after starts_at")
        if self.is_recurring and self.recurrence_type is None:
            raise ValueError("recurrence_type is required for recurring campaigns")
        if self.discount_type == DiscountType.PERCENT and self.discount_value > 100:
            raise ValueError("Percent discounts cannot exceed 100")
        return self


class SeasonalCampaignUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    banner_text: str | None = Field(default=None, max_length=500)
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    is_recurring: bool | None = None
    recurrence_type: RecurrenceType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    applicable_services: list[str] | None = None
    promo_code: str | None = Field(default=None, min_length=3, max_length=50)
    stackable: bool | None = None
    is_active: bool | None = None

    @field_validator("promo_code")
    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        return normalize_code(value) if value is not None else None


class SeasonalCampaignResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    banner_text: str | None = None
    starts_at: datetime
    ends_at: datetime
    is_recurring: bool
    recurrence_type: str | None = None
    discount_type: str
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal
    applicable_services: list[str] | None = None
    promo_code: str | None = None
    stackable: bool
    is_active: bool
    times_applied: int
    total_discount_given: Decimal
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class ActiveSeasonalCampaignResponse(SeasonalCampaignResponse):
    """A campaign running now, with the bounds of its current occurrence."""

    window_starts_at: datetime
    window_ends_at: datetime
    time_remaining_seconds: int
    is_expiring_soon: bool
