"""Discount evaluation request/response schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.discount_code import DiscountType
from app.schemas.discount_code import normalize_code


class ServiceLineInput(BaseModel):
    service_type: str = Field(min_length=1, max_length=50)
    quantity: Decimal = Field(default=Decimal("1"), ge=0)
    unit: str | None = Field(default=None, max_length=20)


class ManualDiscountInput(BaseModel):
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)


class DiscountEvaluationRequest(BaseModel):
    order_id: UUID
    customer_id: UUID | None = None
    customer_email: EmailStr | None = None
    order_amount: Decimal = Field(ge=0)
    services: list[ServiceLineInput] = Field(default_factory=list)
    tier: str | None = Field(default=None, max_length=50)
    promo_code: str | None = Field(default=None, max_length=50)
    is_new_customer: bool | None = None
    customer_total_orders: int | None = Field(default=None, ge=0)
    referral_code: str | None = Field(default=None, max_length=20)
    requested_by: str = Field(min_length=1, max_length=255)
    requester_role: str = Field(min_length=1, max_length=50)
    manual_discount: ManualDiscountInput | None = None
    reason: str | None = None
    apply: bool = True

    @field_validator("promo_code")
    @classmethod
    def normalize(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return normalize_code(value)


class DiscountSourceResponse(BaseModel):
    source_type: str
    source_id: str | None = None
    source_name: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    stackable: bool


class RejectedSourceResponse(BaseModel):
    source_type: str
    source_id: str | None = None
    source_name: str
    discount_amount: Decimal
    reason: str
    message: str


class PromoCodeResultResponse(BaseModel):
    code: str
    is_valid: bool
    error_code: str | None = None
    message: str | None = None
    discount_amount: Decimal = Decimal("0")


class NextVolumeTierResponse(BaseModel):
    label: str | None = None
    amount_to_reach: Decimal
    additional_percent: Decimal | None = None


class ComposedDiscountResponse(BaseModel):
    order_id: UUID
    order_amount: Decimal
    sources: list[DiscountSourceResponse]
    rejected: list[RejectedSourceResponse]
    total_discount_amount: Decimal
    total_discount_percent: Decimal
    final_amount: Decimal
    requires_approval: bool
    approval_reason: str | None = None
    approval_request_id: UUID | None = None
    reservation_id: UUID | None = None
    applied: bool = False
    promo_code_result: PromoCodeResultResponse | None = None
    next_volume_tier: NextVolumeTierResponse | None = None


class AppliedDiscountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    customer_id: UUID | None = None
    source_type: str
    source_id: UUID | None = None
    source_name: str
    discount_type: str
    discount_value: Decimal
    discount_amount: Decimal
    order_position: int
    applied_to_subtotal: Decimal
    approval_request_id: UUID | None = None
    applied_by: str | None = None
    applied_at: datetime
