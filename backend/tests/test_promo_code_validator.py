"""Tests for PromoCodeValidator against in-memory catalogs."""

from datetime import UTC, datetime
from decimal import Decimal
from types import MappingProxyType
from uuid import uuid4

import pytest

from app.models.discount_code import DiscountType
from app.services.discounts.definitions import Catalog, PromoCodeDefinition
from app.services.discounts.errors import DiscountErrorCode
from app.services.discounts.promo_code import PromoCodeValidator
from app.services.discounts.types import OrderContext, ServiceLine
from tests.conftest import DEFAULT_ORG_ID

NOW = datetime(2026, 7, 1, 12, 0, tzinfo=UTC)


class FakeUsage:
    """Usage reader backed by plain counters."""

    def __init__(self, total: int = 0, per_customer: int = 0):
        self.total = total
        self.per_customer = per_customer

    def uses_claimed(self, discount_code_id):
        return self.total

    def customer_claims(self, discount_code_id, customer_id, customer_email):
        return self.per_customer


def _definition(**overrides) -> PromoCodeDefinition:
    values = {
        "id": uuid4(),
        "code": "SUMMER10",
        "name": "Summer sale",
        "discount_type": DiscountType.PERCENT,
        "discount_value": Decimal("10"),
        "max_discount_amount": Decimal("50"),
        "min_order_amount": Decimal("100"),
        "max_uses_total": 100,
        "max_uses_per_customer": 1,
    }
    values.update(overrides)
    return PromoCodeDefinition(**values)


def _catalog(*definitions: PromoCodeDefinition, expired: frozenset[str] = frozenset()) -> Catalog:
    return Catalog(
        organization_id=DEFAULT_ORG_ID,
        as_of=NOW,
        promo_codes=MappingProxyType({d.code: d for d in definitions}),
        expired_codes=expired,
    )


def _context(amount: str = "600", **overrides) -> OrderContext:
    values = {
        "order_amount": Decimal(amount),
        "as_of": NOW,
        "customer_id": str(uuid4()),
        "services": (ServiceLine(service_type="roof_cleaning"),),
    }
    values.update(overrides)
    return OrderContext(**values)


class TestPromoCodeValidator:
    def test_percent_code_is_capped_at_max_discount(self):
        result = PromoCodeValidator(FakeUsage()).validate(_catalog(_definition()), "SUMMER10", _context())

        assert result.is_valid
        assert result.error_code is None
        # 10% of 600 is 60, capped at 50
        assert result.discount_amount == Decimal("50.00")

    def test_code_lookup_is_case_insensitive(self):
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(_definition()), "  summer10 ", _context()
        )
        assert result.is_valid
        assert result.code == "SUMMER10"

    def test_unknown_code(self):
        result = PromoCodeValidator(FakeUsage()).validate(_catalog(), "NOPE", _context())
        assert not result.is_valid
        assert result.error_code == DiscountErrorCode.CODE_NOT_FOUND
        assert result.to_candidate() is None

    def test_expired_code(self):
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(expired=frozenset({"WINTER"})), "winter", _context()
        )
        assert result.error_code == DiscountErrorCode.CODE_EXPIRED

    def test_total_usage_limit(self):
        validator = PromoCodeValidator(FakeUsage(total=100))
        result = validator.validate(_catalog(_definition()), "SUMMER10", _context())
        assert result.error_code == DiscountErrorCode.USAGE_LIMIT_EXCEEDED

    def test_per_customer_limit(self):
        validator = PromoCodeValidator(FakeUsage(per_customer=1))
        result = validator.validate(_catalog(_definition()), "SUMMER10", _context())
        assert result.error_code == DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED

    def test_per_customer_limit_skipped_for_anonymous_order(self):
        validator = PromoCodeValidator(FakeUsage(per_customer=5))
        result = validator.validate(
            _catalog(_definition()), "SUMMER10", _context(customer_id=None)
        )
        assert result.is_valid

    def test_minimum_order_amount(self):
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(_definition()), "SUMMER10", _context("99.99")
        )
        assert result.error_code == DiscountErrorCode.MINIMUM_ORDER_NOT_MET
        assert "100" in result.message

    def test_usage_checked_before_minimum_order(self):
        validator = PromoCodeValidator(FakeUsage(total=100))
        result = validator.validate(_catalog(_definition()), "SUMMER10", _context("10"))
        assert result.error_code == DiscountErrorCode.USAGE_LIMIT_EXCEEDED

    @pytest.mark.parametrize(
        ("overrides", "context_overrides"),
        [
            ({"applicable_services": frozenset({"gutter_cleaning"})}, {}),
            ({"applicable_tiers": frozenset({"premium"})}, {"tier": "basic"}),
            ({"new_customers_only": True}, {"is_new_customer": False}),
            ({"existing_customers_only": True}, {"is_new_customer": True}),
            ({"specific_customer_ids": frozenset({"someone-else"})}, {}),
        ],
    )
    def test_restrictions(self, overrides, context_overrides):
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(_definition(**overrides)), "SUMMER10", _context(**context_overrides)
        )
        assert result.error_code == DiscountErrorCode.RESTRICTION_NOT_MET

    def test_fixed_code_never_exceeds_order(self):
        definition = _definition(
            discount_type=DiscountType.FIXED,
            discount_value=Decimal("500"),
            max_discount_amount=None,
            min_order_amount=Decimal("0"),
        )
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(definition), "SUMMER10", _context("120")
        )
        assert result.discount_amount == Decimal("120")

    def test_candidate_carries_promo_source(self):
        definition = _definition()
        result = PromoCodeValidator(FakeUsage()).validate(
            _catalog(definition), "SUMMER10", _context()
        )
        candidate = result.to_candidate()
        assert candidate is not None
        assert candidate.source_type.value == "promo_code"
        assert candidate.source_id == str(definition.id)
        assert candidate.discount_amount == Decimal("50.00")
