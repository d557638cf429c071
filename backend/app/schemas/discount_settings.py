"""DiscountSettings schemas: stacking policy and approval configuration."""

from datetime import datetime
from decimal import Decimal
from typing import Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RoleLimit(BaseModel):
    max_percent: Decimal = Field(ge=0, le=100)
    max_amount: Decimal | None = Field(default=None, ge=0)


class DiscountSettingsUpsert(BaseModel):
    allow_code_rule_stacking: bool = True
    max_combined_percent: Decimal = Field(default=Decimal("50"), gt=0, le=100)
    require_approval: bool = True
    role_limits: dict[str, RoleLimit] | None = None
    escalation_after_hours: int = Field(default=24, ge=1)
    auto_reject_after_hours: int = Field(default=72, ge=1)
    default_approver_id: str | None = Field(default=None, max_length=255)
    escalation_approver_id: str | None = Field(default=None, max_length=255)
    approval_threshold_percent: Decimal | None = Field(default=None, ge=0, le=100)
    approval_threshold_amount: Decimal | None = Field(default=None, ge=0)
    approval_for_orders_over: Decimal | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_timers(self) -> Self:
        if self.auto_reject_after_hours <= self.escalation_after_hours:
            raise ValueError("auto_reject_after_hours must be greater than escalation_after_hours")
        return self


class DiscountSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    allow_code_rule_stacking: bool
    max_combined_percent: Decimal
    require_approval: bool
    role_limits: dict[str, RoleLimit]
    escalation_after_hours: int
    auto_reject_after_hours: int
    default_approver_id: str | None = None
    escalation_approver_id: str | None = None
    approval_threshold_percent: Decimal | None = None
    approval_threshold_amount: Decimal | None = None
    approval_for_orders_over: Decimal | None = None
