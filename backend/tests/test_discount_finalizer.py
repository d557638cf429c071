"""Tests for DiscountFinalizer."""

from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.applied_discount import DiscountSourceType
from app.models.discount_code import DiscountType
from app.models.discount_code_usage import UsageStatus
from app.repositories.automatic_rule_repository import AutomaticRuleRepository
from app.schemas.automatic_rule import AutomaticRuleCreate
from app.services.discount_finalizer import DiscountFinalizer
from app.services.discounts.errors import OrderAlreadyFinalized
from app.services.discounts.types import ComposedDiscount, DiscountCandidate
from tests.conftest import DEFAULT_ORG_ID, OTHER_ORG_ID

ORDER = Decimal("1000")


@pytest.fixture
def finalizer(db_session):
    return DiscountFinalizer(db_session)


@pytest.fixture
def rule(db_session):
    return AutomaticRuleRepository(db_session).create(
        AutomaticRuleCreate(
            name="Big order",
            conditions={"rule_type": "order_minimum", "min_amount": "500"},
            discount_type=DiscountType.PERCENT,
            discount_value=Decimal("5"),
            stackable=True,
        ),
        DEFAULT_ORG_ID,
    )


def _source(source_type, amount, source_id=None, name="Source"):
    return DiscountCandidate(
        source_type=source_type,
        source_id=str(source_id) if source_id else None,
        source_name=name,
        discount_type=DiscountType.FIXED,
        discount_value=Decimal(amount),
        discount_amount=Decimal(amount),
        stackable=True,
    )


def _composed(*sources):
    total = sum((s.discount_amount for s in sources), Decimal("0"))
    return ComposedDiscount(
        order_amount=ORDER,
        sources=sources,
        total_discount_amount=total,
        total_discount_percent=total * 100 / ORDER,
    )


def _reserve(finalizer, code):
    return finalizer.ledger.reserve_usage(
        code.id, uuid4(), discount_amount=Decimal("100"), organization_id=DEFAULT_ORG_ID
    )


class TestFinalize:
    def test_rows_in_composition_order(self, db_session, finalizer, rule):
        order_id = uuid4()
        composed = _composed(
            _source(DiscountSourceType.AUTOMATIC_RULE, "50", rule.id, "Big order"),
            _source(DiscountSourceType.MANUAL, "25", name="Manual discount"),
        )

        rows = finalizer.finalize(DEFAULT_ORG_ID, order_id, composed, applied_by="rep@example.com")

        assert [r.order_position for r in rows] == [1, 2]
        assert [r.source_type for r in rows] == ["automatic_rule", "manual"]
        assert rows[0].source_id == rule.id
        assert rows[1].source_id is None
        assert Decimal(str(rows[0].applied_to_subtotal)) == ORDER
        db_session.refresh(rule)
        assert rule.times_applied == 1
        assert Decimal(str(rule.total_discount_given)) == Decimal("50")

    def test_order_is_finalized_once(self, finalizer):
        order_id = uuid4()
        composed = _composed(_source(DiscountSourceType.MANUAL, "25"))
        finalizer.finalize(DEFAULT_ORG_ID, order_id, composed)

        with pytest.raises(OrderAlreadyFinalized):
            finalizer.finalize(DEFAULT_ORG_ID, order_id, composed)
        with pytest.raises(OrderAlreadyFinalized):
            finalizer.ensure_not_finalized(DEFAULT_ORG_ID, order_id)
        # Order ids are scoped to the organization
        finalizer.ensure_not_finalized(OTHER_ORG_ID, order_id)

    def test_commits_reservation_of_applied_code(self, db_session, finalizer, make_code):
        code = make_code()
        reservation = _reserve(finalizer, code)
        composed = _composed(_source(DiscountSourceType.PROMO_CODE, "100", code.id, code.code))

        finalizer.finalize(DEFAULT_ORG_ID, reservation.order_id, composed, reservation_id=reservation.id)

        usage = finalizer.ledger.usage_repo.get_by_id(reservation.id)
        assert usage.status == UsageStatus.COMMITTED.value
        db_session.refresh(code)
        assert code.times_used == 1

    def test_releases_reservation_of_dropped_code(self, db_session, finalizer, make_code):
        code = make_code()
        reservation = _reserve(finalizer, code)
        composed = _composed(_source(DiscountSourceType.MANUAL, "25"))

        finalizer.finalize(DEFAULT_ORG_ID, reservation.order_id, composed, reservation_id=reservation.id)

        usage = finalizer.ledger.usage_repo.get_by_id(reservation.id)
        assert usage.status == UsageStatus.RELEASED.value
        assert usage.release_reason == "not_applied"
        db_session.refresh(code)
        assert code.uses_claimed == 0

    def test_get_applied(self, finalizer):
        order_id = uuid4()
        finalizer.finalize(DEFAULT_ORG_ID, order_id, _composed(_source(DiscountSourceType.MANUAL, "25")))
        assert len(finalizer.get_applied(DEFAULT_ORG_ID, order_id)) == 1
        assert finalizer.get_applied(OTHER_ORG_ID, order_id) == []
