"""Automatic rule evaluation.

Rules are evaluated in descending priority. Matches accumulate while they are
stackable; the first non-stackable match ends evaluation and is returned alone.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from app.models.applied_discount import DiscountSourceType
from app.models.automatic_rule import RuleType
from app.models.volume_discount_tier import MeasurementType
from app.schemas.automatic_rule import (
    BulkVolumeCondition,
    DayOfWeekCondition,
    FirstOrderCondition,
    OrderMinimumCondition,
    ReferralCondition,
    RepeatCustomerCondition,
    SeasonalCondition,
    ServiceComboCondition,
    ServiceQuantityCondition,
)
from app.services.discounts.definitions import Catalog, RuleDefinition
from app.services.discounts.types import (
    DiscountCandidate,
    OrderContext,
    compute_discount_amount,
)

logger = logging.getLogger(__name__)


def measure(measurement_type: MeasurementType | str, context: OrderContext) -> Decimal:
    """Measured order size: amount, total quantity, or square footage."""
    kind = MeasurementType(measurement_type)
    if kind == MeasurementType.AMOUNT:
        return context.order_amount
    if kind == MeasurementType.QUANTITY:
        return sum((line.quantity for line in context.services), Decimal("0"))
    return sum(
        (line.quantity for line in context.services if (line.unit or "").lower() == "sqft"),
        Decimal("0"),
    )


def _order_minimum(condition: OrderMinimumCondition, context: OrderContext) -> bool:
    return context.order_amount >= condition.min_amount


def _service_quantity(condition: ServiceQuantityCondition, context: OrderContext) -> bool:
    return any(
        line.service_type == condition.service and line.quantity >= condition.min_quantity
        for line in context.services
    )


def _service_combo(condition: ServiceComboCondition, context: OrderContext) -> bool:
    present = context.service_types
    if condition.require_all:
        return all(service in present for service in condition.required_services)
    return any(service in present for service in condition.required_services)


def _first_order(condition: FirstOrderCondition, context: OrderContext) -> bool:
    return context.is_new_customer


def _repeat_customer(condition: RepeatCustomerCondition, context: OrderContext) -> bool:
    return not context.is_new_customer and context.customer_total_orders >= condition.min_orders


def _referral(condition: ReferralCondition, context: OrderContext) -> bool:
    return bool(context.referral_code)


def _seasonal(condition: SeasonalCondition, context: OrderContext) -> bool:
    month = context.as_of.month
    if condition.start_month <= condition.end_month:
        return condition.start_month <= month <= condition.end_month
    # Range wraps over the year end, e.g. November to February
    return month >= condition.start_month or month <= condition.end_month


def _day_of_week(condition: DayOfWeekCondition, context: OrderContext) -> bool:
    return context.as_of.weekday() in condition.days


def _bulk_volume(condition: BulkVolumeCondition, context: OrderContext) -> bool:
    return measure(condition.measurement_type, context) >= condition.min_value


RulePredicate = Callable[[Any, OrderContext], bool]

RULE_PREDICATES: dict[RuleType, RulePredicate] = {
    RuleType.ORDER_MINIMUM: _order_minimum,
    RuleType.SERVICE_QUANTITY: _service_quantity,
    RuleType.SERVICE_COMBO: _service_combo,
    RuleType.FIRST_ORDER: _first_order,
    RuleType.REPEAT_CUSTOMER: _repeat_customer,
    RuleType.REFERRAL: _referral,
    RuleType.SEASONAL: _seasonal,
    RuleType.DAY_OF_WEEK: _day_of_week,
    RuleType.BULK_VOLUME: _bulk_volume,
}


@dataclass(frozen=True)
class MatchedRule:
    rule: RuleDefinition
    discount_amount: Decimal

    def to_candidate(self) -> DiscountCandidate:
        source_type = (
            DiscountSourceType.REFERRAL
            if self.rule.rule_type == RuleType.REFERRAL.value
            else DiscountSourceType.AUTOMATIC_RULE
        )
        return DiscountCandidate(
            source_type=source_type,
            source_id=str(self.rule.id),
            source_name=self.rule.name,
            discount_type=self.rule.discount_type,
            discount_value=self.rule.discount_value,
            discount_amount=self.discount_amount,
            stackable=self.rule.stackable,
            stack_with_codes=self.rule.stack_with_codes,
        )


class AutomaticRuleEngine:
    def __init__(self, predicates: dict[RuleType, RulePredicate] | None = None):
        self.predicates = predicates if predicates is not None else RULE_PREDICATES

    @staticmethod
    def ordered(rules: tuple[RuleDefinition, ...]) -> list[RuleDefinition]:
        """Highest priority first; equal priorities keep creation order."""
        return sorted(rules, key=lambda rule: (-rule.priority, rule.sequence, str(rule.id)))

    def matches(self, rule: RuleDefinition, context: OrderContext) -> bool:
        predicate = self.predicates[RuleType(rule.rule_type)]
        return predicate(rule.condition, context)

    def evaluate(self, catalog: Catalog, context: OrderContext) -> list[MatchedRule]:
        matched: list[MatchedRule] = []
        for rule in self.ordered(catalog.rules):
            if not self.matches(rule, context):
                continue
            amount = compute_discount_amount(
                rule.discount_type,
                rule.discount_value,
                context.order_amount,
                rule.max_discount_amount,
            )
            if not rule.stackable:
                logger.debug("Non-stackable rule %s matched; stopping evaluation", rule.id)
                return [MatchedRule(rule=rule, discount_amount=amount)]
            matched.append(MatchedRule(rule=rule, discount_amount=amount))
        return matched
