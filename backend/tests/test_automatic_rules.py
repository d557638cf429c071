"""Tests for automatic rule conditions and priority evaluation."""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.models.automatic_rule import RuleType
from app.models.discount_code import DiscountType
from app.schemas.automatic_rule import AutomaticRuleCreate, parse_rule_condition
from app.services.discounts.definitions import Catalog, RuleDefinition
from app.services.discounts.rules import RULE_PREDICATES, AutomaticRuleEngine, measure
from app.services.discounts.types import OrderContext, ServiceLine
from tests.conftest import DEFAULT_ORG_ID

# A Wednesday in July
NOW = datetime(2026, 7, 15, 9, 0, tzinfo=UTC)


def _rule(
    rule_type: str,
    conditions: dict | None = None,
    percent: str = "5",
    priority: int = 0,
    stackable: bool = False,
    sequence: int = 0,
    name: str | None = None,
) -> RuleDefinition:
    return RuleDefinition(
        id=uuid4(),
        name=name or rule_type,
        priority=priority,
        condition=parse_rule_condition(rule_type, conditions),
        discount_type=DiscountType.PERCENT,
        discount_value=Decimal(percent),
        stackable=stackable,
        sequence=sequence,
    )


def _catalog(*rules: RuleDefinition) -> Catalog:
    return Catalog(organization_id=DEFAULT_ORG_ID, as_of=NOW, rules=rules)


def _context(amount: str = "1000", **overrides) -> OrderContext:
    values = {"order_amount": Decimal(amount), "as_of": NOW}
    values.update(overrides)
    return OrderContext(**values)


class TestRuleRegistry:
    def test_every_rule_type_has_a_predicate(self):
        assert set(RULE_PREDICATES) == set(RuleType)

    def test_unknown_condition_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            parse_rule_condition("order_minimum", {"min_amount": 10, "bogus": True})

    def test_conditions_must_match_rule_type(self):
        with pytest.raises(ValidationError):
            parse_rule_condition("service_quantity", {"min_amount": 10})

    def test_create_schema_rejects_percent_over_100(self):
        with pytest.raises(ValidationError):
            AutomaticRuleCreate(
                name="Too much",
                conditions={"rule_type": "first_order"},
                discount_type=DiscountType.PERCENT,
                discount_value=Decimal("120"),
            )


class TestConditions:
    engine = AutomaticRuleEngine()

    def test_order_minimum(self):
        rule = _rule("order_minimum", {"min_amount": "500"})
        assert self.engine.matches(rule, _context("500"))
        assert not self.engine.matches(rule, _context("499.99"))

    def test_service_quantity(self):
        rule = _rule("service_quantity", {"service": "window_cleaning", "min_quantity": "10"})
        context = _context(services=(ServiceLine("window_cleaning", Decimal("12")),))
        assert self.engine.matches(rule, context)
        assert not self.engine.matches(
            rule, _context(services=(ServiceLine("window_cleaning", Decimal("9")),))
        )

    def test_service_combo_all_and_any(self):
        context = _context(services=(ServiceLine("roof"), ServiceLine("gutter")))
        require_all = _rule("service_combo", {"required_services": ["roof", "gutter", "siding"]})
        require_any = _rule(
            "service_combo",
            {"required_services": ["roof", "siding"], "require_all": False},
        )
        assert not self.engine.matches(require_all, context)
        assert self.engine.matches(require_any, context)

    def test_first_order_and_repeat_customer(self):
        first = _rule("first_order")
        repeat = _rule("repeat_customer", {"min_orders": 3})
        new_customer = _context(is_new_customer=True)
        regular = _context(is_new_customer=False, customer_total_orders=3)
        assert self.engine.matches(first, new_customer)
        assert not self.engine.matches(first, regular)
        assert self.engine.matches(repeat, regular)
        assert not self.engine.matches(repeat, _context(is_new_customer=False, customer_total_orders=2))

    def test_referral(self):
        rule = _rule("referral")
        assert self.engine.matches(rule, _context(referral_code="ABCD2345"))
        assert not self.engine.matches(rule, _context())

    def test_seasonal_month_range_wraps_year_end(self):
        winter = _rule("seasonal", {"start_month": 11, "end_month": 2})
        summer = _rule("seasonal", {"start_month": 6, "end_month": 8})
        assert self.engine.matches(summer, _context())
        assert not self.engine.matches(winter, _context())
        january = _context(as_of=datetime(2027, 1, 10, tzinfo=UTC))
        assert self.engine.matches(winter, january)

    def test_day_of_week(self):
        assert self.engine.matches(_rule("day_of_week", {"days": [2]}), _context())
        assert not self.engine.matches(_rule("day_of_week", {"days": [5, 6]}), _context())

    def test_bulk_volume_by_square_feet(self):
        rule = _rule("bulk_volume", {"measurement_type": "sqft", "min_value": "2000"})
        context = _context(
            services=(
                ServiceLine("pressure_washing", Decimal("1500"), unit="sqft"),
                ServiceLine("pressure_washing", Decimal("800"), unit="SQFT"),
                ServiceLine("window_cleaning", Decimal("40")),
            )
        )
        assert measure("sqft", context) == Decimal("2300")
        assert measure("quantity", context) == Decimal("2340")
        assert self.engine.matches(rule, context)


class TestAutomaticRuleEngine:
    engine = AutomaticRuleEngine()

    def test_non_stackable_match_short_circuits(self):
        big_order = _rule("order_minimum", {"min_amount": "5000"}, percent="5", priority=10)
        first_order = _rule("first_order", percent="3", priority=5, stackable=True)

        matched = self.engine.evaluate(
            _catalog(first_order, big_order), _context("6000", is_new_customer=True)
        )

        assert [m.rule.id for m in matched] == [big_order.id]
        assert matched[0].discount_amount == Decimal("300.00")

    def test_stackable_matches_accumulate(self):
        first = _rule("order_minimum", {"min_amount": "0"}, percent="2", priority=30, stackable=True)
        second = _rule("first_order", percent="3", priority=20, stackable=True)
        unmatched = _rule("referral", percent="7", priority=15)

        matched = self.engine.evaluate(_catalog(unmatched, second, first), _context())

        assert [m.rule.id for m in matched] == [first.id, second.id]
        assert [m.discount_amount for m in matched] == [Decimal("20.00"), Decimal("30.00")]

    def test_later_non_stackable_match_is_returned_alone(self):
        first = _rule("order_minimum", {"min_amount": "0"}, percent="2", priority=30, stackable=True)
        stopper = _rule("order_minimum", {"min_amount": "0"}, percent="4", priority=10)
        never = _rule("order_minimum", {"min_amount": "0"}, percent="9", priority=1, stackable=True)

        matched = self.engine.evaluate(_catalog(never, stopper, first), _context())

        assert [m.rule.id for m in matched] == [stopper.id]

    def test_equal_priority_keeps_creation_order(self):
        rules = [
            _rule("order_minimum", {"min_amount": "0"}, stackable=True, sequence=index, name=str(index))
            for index in range(5)
        ]
        matched = self.engine.evaluate(_catalog(*reversed(rules)), _context())
        assert [m.rule.name for m in matched] == ["0", "1", "2", "3", "4"]

    def test_evaluation_is_deterministic(self):
        rules = tuple(
            _rule("order_minimum", {"min_amount": "0"}, priority=p, stackable=True)
            for p in (3, 1, 2, 3)
        )
        runs = {
            tuple(m.rule.id for m in self.engine.evaluate(_catalog(*rules), _context()))
            for _ in range(10)
        }
        assert len(runs) == 1

    def test_referral_rule_becomes_referral_source(self):
        rule = _rule("referral", percent="10")
        matched = self.engine.evaluate(_catalog(rule), _context(referral_code="ABCD2345"))
        assert matched[0].to_candidate().source_type.value == "referral"

    def test_no_rules_no_matches(self):
        assert self.engine.evaluate(_catalog(), _context()) == []
