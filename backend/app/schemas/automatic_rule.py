"""AutomaticRule schemas and the closed set of rule condition variants."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

from app.models.automatic_rule import RuleType
from app.models.discount_code import DiscountType
from app.models.volume_discount_tier import MeasurementType


class _Condition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class OrderMinimumCondition(_Condition):
    rule_type: Literal["order_minimum"] = "order_minimum"
    min_amount: Decimal = Field(ge=0)


class ServiceQuantityCondition(_Condition):
    rule_type: Literal["service_quantity"] = "service_quantity"
    service: str = Field(min_length=1, max_length=50)
    min_quantity: Decimal = Field(gt=0)


class ServiceComboCondition(_Condition):
    rule_type: Literal["service_combo"] = "service_combo"
    required_services: list[str] = Field(min_length=1)
    require_all: bool = True


class FirstOrderCondition(_Condition):
    rule_type: Literal["first_order"] = "first_order"


class RepeatCustomerCondition(_Condition):
    rule_type: Literal["repeat_customer"] = "repeat_customer"
    min_orders: int = Field(default=1, ge=1)


class ReferralCondition(_Condition):
    rule_type: Literal["referral"] = "referral"


class SeasonalCondition(_Condition):
    """Month range, inclusive; ``start_month > end_month`` wraps over the year end."""

    rule_type: Literal["seasonal"] = "seasonal"
    start_month: int = Field(ge=1, le=12)
    end_month: int = Field(ge=1, le=12)


class DayOfWeekCondition(_Condition):
    """Weekdays numbered 0 (Monday) to 6 (Sunday)."""

    rule_type: Literal["day_of_week"] = "day_of_week"
    days: list[Annotated[int, Field(ge=0, le=6)]] = Field(min_length=1)


class BulkVolumeCondition(_Condition):
    rule_type: Literal["bulk_volume"] = "bulk_volume"
    measurement_type: MeasurementType
    min_value: Decimal = Field(ge=0)


RuleCondition = Annotated[
    OrderMinimumCondition
    | ServiceQuantityCondition
    | ServiceComboCondition
    | FirstOrderCondition
    | RepeatCustomerCondition
    | ReferralCondition
    | SeasonalCondition
    | DayOfWeekCondition
    | BulkVolumeCondition,
    Field(discriminator="rule_type"),
]

_condition_adapter: TypeAdapter[Any] = TypeAdapter(RuleCondition)


def parse_rule_condition(rule_type: str, conditions: dict[str, Any] | None) -> Any:
    """Build the typed condition for a stored rule row."""
    return _condition_adapter.validate_python({**(conditions or {}), "rule_type": rule_type})


class AutomaticRuleCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    priority: int = 0
    conditions: RuleCondition
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    stackable: bool = False
    stack_with_codes: bool = True
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    created_by: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_discount(self) -> Self:
        if self.discount_type == DiscountType.PERCENT and self.discount_value > 100:
            raise ValueError("Percent discounts cannot exceed 100")
        if self.starts_at and self.expires_at and self.expires_at <= self.starts_at:
            raise ValueError("expires_at must be after starts_at")
        return self


class AutomaticRuleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    priority: int | None = None
    conditions: RuleCondition | None = None
    discount_type: DiscountType | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    max_discount_amount: Decimal | None = Field(default=None, gt=0)
    stackable: bool | None = None
    stack_with_codes: bool | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool | None = None


class AutomaticRuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    priority: int
    rule_type: RuleType
    conditions: dict[str, Any]
    discount_type: str
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    stackable: bool
    stack_with_codes: bool
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool
    times_applied: int
    total_discount_given: Decimal
    created_by: str | None = None
    created_at: datetime
    updated_at: datetime
