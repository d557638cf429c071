"""Immutable snapshots of discount definitions, as seen by one evaluation."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import Any
from uuid import UUID

from app.models.discount_code import DiscountType


@dataclass(frozen=True)
class PromoCodeDefinition:
    id: UUID
    code: str
    name: str
    discount_type: DiscountType
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal = Decimal("0")
    max_uses_total: int | None = None
    max_uses_per_customer: int | None = 1
    applicable_services: frozenset[str] | None = None
    applicable_tiers: frozenset[str] | None = None
    specific_customer_ids: frozenset[str] | None = None
    new_customers_only: bool = False
    existing_customers_only: bool = False


@dataclass(frozen=True)
class RuleDefinition:
    id: UUID
    name: str
    priority: int
    condition: Any
    discount_type: DiscountType
    discount_value: Decimal
    max_discount_amount: Decimal | None = None
    stackable: bool = False
    stack_with_codes: bool = True
    # Load order among rules of equal priority (creation order)
    sequence: int = 0

    @property
    def rule_type(self) -> str:
        return str(self.condition.rule_type)


@dataclass(frozen=True)
class LoyaltyTierDefinition:
    name: str
    min_points: int
    discount_percent: Decimal
    perks: tuple[str, ...] = ()


@dataclass(frozen=True)
class LoyaltyProgramDefinition:
    id: UUID
    name: str
    tiers: tuple[LoyaltyTierDefinition, ...]
    stackable: bool = True


@dataclass(frozen=True)
class VolumeBandDefinition:
    min: Decimal
    max: Decimal | None
    discount_percent: Decimal | None = None
    discount_fixed: Decimal | None = None
    label: str | None = None

    def contains(self, value: Decimal) -> bool:
        return self.min <= value and (self.max is None or value < self.max)


@dataclass(frozen=True)
class VolumeTierDefinition:
    id: UUID
    name: str
    measurement_type: str
    bands: tuple[VolumeBandDefinition, ...]
    service_type: str | None = None
    stackable: bool = False
    priority: int = 0


@dataclass(frozen=True)
class SeasonalCampaignDefinition:
    id: UUID
    name: str
    starts_at: datetime
    ends_at: datetime
    discount_type: DiscountType
    discount_value: Decimal
    is_recurring: bool = False
    recurrence_type: str | None = None
    max_discount_amount: Decimal | None = None
    min_order_amount: Decimal = Decimal("0")
    applicable_services: frozenset[str] | None = None
    promo_code: str | None = None
    stackable: bool = False


@dataclass(frozen=True)
class RoleLimitDefinition:
    max_percent: Decimal
    max_amount: Decimal | None = None


_NO_DISCOUNT_LIMIT = RoleLimitDefinition(max_percent=Decimal("0"), max_amount=Decimal("0"))


@dataclass(frozen=True)
class StackingPolicy:
    allow_code_rule_stacking: bool = True
    max_combined_percent: Decimal = Decimal("50")


@dataclass(frozen=True)
class ApprovalPolicy:
    require_approval: bool = True
    role_limits: Mapping[str, RoleLimitDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    escalation_after_hours: int = 24
    auto_reject_after_hours: int = 72
    default_approver_id: str | None = None
    escalation_approver_id: str | None = None
    threshold_percent: Decimal | None = None
    threshold_amount: Decimal | None = None
    orders_over: Decimal | None = None

    def limit_for(self, role: str) -> RoleLimitDefinition:
        """Limit for ``role``; unknown roles may not discount at all without approval."""
        return self.role_limits.get(role, _NO_DISCOUNT_LIMIT)


@dataclass(frozen=True)
class Catalog:
    """Active discount definitions of one organization as of ``as_of``."""

    organization_id: UUID
    as_of: datetime
    promo_codes: Mapping[str, PromoCodeDefinition] = field(
        default_factory=lambda: MappingProxyType({})
    )
    # Normalized codes that exist but whose validity window has closed
    expired_codes: frozenset[str] = frozenset()
    rules: tuple[RuleDefinition, ...] = ()
    loyalty_program: LoyaltyProgramDefinition | None = None
    volume_tiers: tuple[VolumeTierDefinition, ...] = ()
    seasonal_campaigns: tuple[SeasonalCampaignDefinition, ...] = ()
    stacking_policy: StackingPolicy = StackingPolicy()
    approval_policy: ApprovalPolicy = ApprovalPolicy()
