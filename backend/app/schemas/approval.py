"""Discount approval request schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.discount_code import DiscountType


class CounterOffer(BaseModel):
    discount_type: DiscountType
    discount_value: Decimal = Field(gt=0)


class ApprovalApproveRequest(BaseModel):
    reviewer_id: str = Field(min_length=1, max_length=255)
    counter_offer: CounterOffer | None = None
    notes: str | None = None


class ApprovalRejectRequest(BaseModel):
    reviewer_id: str = Field(min_length=1, max_length=255)
    notes: str | None = None


class ApprovalCancelRequest(BaseModel):
    requester_id: str = Field(min_length=1, max_length=255)


class ApprovalRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    customer_id: UUID | None = None
    order_amount: Decimal
    requested_by: str
    requester_role: str
    requested_at: datetime
    requested_discount_amount: Decimal
    requested_discount_percent: Decimal
    reason: str | None = None
    status: str
    assigned_to: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    reviewer_notes: str | None = None
    counter_discount_type: str | None = None
    counter_discount_value: Decimal | None = None
    approved_discount_amount: Decimal | None = None
    escalated_at: datetime | None = None
    escalated_to: str | None = None
    reservation_id: UUID | None = None
    created_at: datetime
    updated_at: datetime
