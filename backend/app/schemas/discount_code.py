"""DiscountCode (promo code) schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.discount_code import DiscountType


def normalize_code(code: str) -> str:
    return code.strip().upper()


class DiscountCodeFields(BaseModel):
    """Everything about a promo code except the code itself."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0)
    max_uses_total: int | None = Field(default=None, ge=1)
    max_uses_per_customer: int | None = Field(default=1, ge=1)
    applicable_services: list[str] | None = None
    applicable_tiers: list[str] | None = None
    new_customers_only: bool = False
    existing_customers_only: bool = False
    specific_customer_ids: list[UUID] | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    created_by: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_discount(self) -> Self:
        if self.discount_type == DiscountType.PERCENT and self.discount_value > 100:
            raise ValueError("Percent discounts cannot exceed 100")
        if self.new_customers_only and self.existing_customers_only:
            raise ValueError("A code cannot be restricted to both new and existing customers")
        if self.starts_at and self.expires_at and self.expires_at <= self.starts_at:
            raise ValueError("expires_at must be after starts_at")
        return self


class DiscountCodeCreate(DiscountCodeFields):
    code: str = Field(min_length=3, max_length=50)

    @field_validator("code")
    @classmethod
    def normalize(cls, value: str) -> str:
        return normalize_code(value)


class CodePattern(str, Enum):
    RANDOM = "random"
    SEQUENTIAL = "sequential"
    PREFIX = "prefix"


class DiscountCodeBulkCreate(DiscountCodeFields):
    """Many codes sharing one configuration.

    ``random`` codes are ``code_length`` characters long, ``prefix`` codes are
    ``prefix`` followed by random characters up to ``code_length``, and
    ``sequential`` codes are ``prefix`` followed by a four digit counter.
    """

    quantity: int = Field(ge=1, le=500)
    pattern: CodePattern = CodePattern.RANDOM
    prefix: str = Field(default="PROMO", max_length=20, pattern=r"^[A-Za-z0-9]*$")
    code_length: int = Field(default=8, ge=4, le=32)

    @field_validator("prefix")
    @classmethod
    def normalize_prefix(cls, value: str) -> str:
        return normalize_code(value)

    @model_validator(mode="after")
    def validate_pattern(self) -> Self:
        if self.pattern == CodePattern.PREFIX and len(self.prefix) + 4 > self.code_length:
            raise ValueError("code_length must leave at least 4 random characters after the prefix")
        return self


class DiscountCodeUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    min_order_amount: Decimal | None = Field(default=None, ge=0)
    max_uses_total: int | None = Field(default=None, ge=1)
    max_uses_per_customer: int | None = Field(default=None, ge=1)
    applicable_services: list[str] | None = None
    applicable_tiers: list[str] | None = None
    new_customers_only: bool | None = None
    existing_customers_only: bool | None = None
    specific_customer_ids: list[UUID] | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool | None = None


class DiscountCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    name: str
    description: str | None = None
    discount_type: str
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal
    max_uses_total: int | None = None
    max_uses_per_customer: int | None = None
    applicable_services: list[str] | None = None
    applicable_tiers: list[str] | None = None
    new_customers_only: bool
    existing_customers_only: bool
    specific_customer_ids: list[UUID] | None = None
    starts_at: datetime
    expires_at: datetime | None = None
    is_active: bool
    times_used: int
    total_discount_given: Decimal
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime


class DiscountCodeUsageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    discount_code_id: UUID
    order_id: UUID
    customer_id: UUID | None = None
    customer_email: str | None = None
    status: str
    order_amount: Decimal
    discount_amount: Decimal
    reserved_at: datetime
    expires_at: datetime | None = None
    committed_at: datetime | None = None
    released_at: datetime | None = None
    release_reason: str | None = None


class DiscountCodeAnalyticsResponse(BaseModel):
    """Redemption figures for a promo code."""

    times_used: int
    outstanding_reservations: int
    total_discount_given: Decimal
    remaining_uses: int | None = None
