"""Value types shared by the discount evaluation pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from app.models.applied_discount import DiscountSourceType
from app.models.discount_code import DiscountType
from app.models.shared import round_money
from app.services.discounts.errors import DiscountErrorCode

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ServiceLine:
    service_type: str
    quantity: Decimal = Decimal("1")
    unit: str | None = None


@dataclass(frozen=True)
class OrderContext:
    """Everything the resolvers need to know about the order being priced."""

    order_amount: Decimal
    as_of: datetime
    customer_id: str | None = None
    customer_email: str | None = None
    services: tuple[ServiceLine, ...] = ()
    tier: str | None = None
    is_new_customer: bool = True
    customer_total_orders: int = 0
    referral_code: str | None = None
    promo_code: str | None = None
    # None when the customer is not enrolled in the loyalty program
    loyalty_points: int | None = None

    @property
    def service_types(self) -> frozenset[str]:
        return frozenset(line.service_type for line in self.services)


@dataclass(frozen=True)
class DiscountCandidate:
    """One source's proposed discount, computed against the original order amount."""

    source_type: DiscountSourceType
    source_id: str | None
    source_name: str
    discount_type: DiscountType
    discount_value: Decimal
    discount_amount: Decimal
    stackable: bool = False
    stack_with_codes: bool = True

    def percent_of(self, order_amount: Decimal) -> Decimal:
        if order_amount <= 0:
            return ZERO
        return self.discount_amount * HUNDRED / order_amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_type": self.source_type.value,
            "source_id": self.source_id,
            "source_name": self.source_name,
            "discount_type": self.discount_type.value,
            "discount_value": str(self.discount_value),
            "discount_amount": str(self.discount_amount),
            "stackable": self.stackable,
            "stack_with_codes": self.stack_with_codes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscountCandidate":
        return cls(
            source_type=DiscountSourceType(data["source_type"]),
            source_id=data.get("source_id"),
            source_name=data["source_name"],
            discount_type=DiscountType(data["discount_type"]),
            discount_value=Decimal(data["discount_value"]),
            discount_amount=Decimal(data["discount_amount"]),
            stackable=bool(data.get("stackable", False)),
            stack_with_codes=bool(data.get("stack_with_codes", True)),
        )


@dataclass(frozen=True)
class RejectedCandidate:
    candidate: DiscountCandidate
    reason: DiscountErrorCode
    message: str


@dataclass(frozen=True)
class CandidateSet:
    promo: DiscountCandidate | None = None
    automatic: tuple[DiscountCandidate, ...] = ()
    loyalty: DiscountCandidate | None = None
    volume: DiscountCandidate | None = None
    seasonal: DiscountCandidate | None = None
    manual: DiscountCandidate | None = None

    def to_dict(self) -> dict[str, Any]:
        def dump(candidate: DiscountCandidate | None) -> dict[str, Any] | None:
            return candidate.to_dict() if candidate is not None else None

        return {
            "promo": dump(self.promo),
            "automatic": [c.to_dict() for c in self.automatic],
            "loyalty": dump(self.loyalty),
            "volume": dump(self.volume),
            "seasonal": dump(self.seasonal),
            "manual": dump(self.manual),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CandidateSet":
        def load(key: str) -> DiscountCandidate | None:
            value = data.get(key)
            return DiscountCandidate.from_dict(value) if value else None

        return cls(
            promo=load("promo"),
            automatic=tuple(DiscountCandidate.from_dict(c) for c in data.get("automatic", [])),
            loyalty=load("loyalty"),
            volume=load("volume"),
            seasonal=load("seasonal"),
            manual=load("manual"),
        )


@dataclass(frozen=True)
class ComposedDiscount:
    order_amount: Decimal
    sources: tuple[DiscountCandidate, ...] = ()
    rejected: tuple[RejectedCandidate, ...] = ()
    total_discount_amount: Decimal = ZERO
    total_discount_percent: Decimal = ZERO

    @property
    def final_amount(self) -> Decimal:
        return self.order_amount - self.total_discount_amount

    @property
    def promo_source(self) -> DiscountCandidate | None:
        for source in self.sources:
            if source.source_type == DiscountSourceType.PROMO_CODE:
                return source
        return None


@dataclass(frozen=True)
class NextTierHint:
    label: str | None
    amount_to_reach: Decimal
    additional_percent: Decimal | None = None


@dataclass
class VolumeMatch:
    candidate: DiscountCandidate | None
    band_index: int
    measured_value: Decimal
    next_tier: NextTierHint | None = field(default=None)


def compute_discount_amount(
    discount_type: DiscountType | str,
    value: Decimal,
    base_amount: Decimal,
    max_amount: Decimal | None = None,
) -> Decimal:
    """Discount for ``base_amount``; never negative and never more than the base."""
    if base_amount <= 0 or value <= 0:
        return ZERO
    if DiscountType(discount_type) == DiscountType.PERCENT:
        amount = round_money(base_amount * value / HUNDRED)
        if max_amount is not None:
            amount = min(amount, max_amount)
    else:
        amount = round_money(value)
    return max(ZERO, min(amount, base_amount))
