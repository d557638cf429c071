"""Tests for the usage ledger: promo code reservations and point postings."""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from app.models.discount_code_usage import UsageStatus
from app.models.loyalty_transaction import LoyaltyTransactionType
from app.models.shared import utc_now
from app.repositories.customer_loyalty_repository import CustomerLoyaltyRepository
from app.services.discounts.errors import DiscountErrorCode, LoyaltyError
from app.services.usage_ledger import Denied, Reservation, UsageLedger
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def ledger(db_session):
    return UsageLedger(db_session)


def _reserve(ledger, code, **kwargs):
    values = {
        "order_id": uuid4(),
        "order_amount": Decimal("600"),
        "discount_amount": Decimal("50"),
        "organization_id": DEFAULT_ORG_ID,
    }
    values.update(kwargs)
    return ledger.reserve_usage(code.id, **values)


class TestReserveUsage:
    def test_last_slot_goes_to_exactly_one_order(self, db_session, ledger, make_code):
        code = make_code(max_uses_total=1)

        first = _reserve(ledger, code)
        second = _reserve(ledger, code)

        assert isinstance(first, Reservation)
        assert isinstance(second, Denied)
        assert second.error_code == DiscountErrorCode.USAGE_LIMIT_EXCEEDED
        db_session.refresh(code)
        assert code.uses_claimed == 1

    def test_unlimited_code(self, db_session, ledger, make_code):
        code = make_code(max_uses_per_customer=None)
        results = [_reserve(ledger, code) for _ in range(5)]
        assert all(isinstance(r, Reservation) for r in results)
        db_session.refresh(code)
        assert code.uses_claimed == 5

    def test_inactive_code_is_denied(self, ledger, make_code):
        code = make_code(max_uses_total=10)
        ledger.code_repo.deactivate(code.code, DEFAULT_ORG_ID)
        result = _reserve(ledger, code)
        assert isinstance(result, Denied)
        assert result.error_code == DiscountErrorCode.CODE_NOT_FOUND

    def test_lost_race_is_retried_once(self, ledger, make_code):
        code = make_code(max_uses_total=10)
        with patch.object(ledger.code_repo, "claim_slot", side_effect=[False, True]) as claim:
            result = _reserve(ledger, code)
        assert isinstance(result, Reservation)
        assert claim.call_count == 2

    def test_repeated_lost_races_report_conflict(self, ledger, make_code):
        code = make_code(max_uses_total=10)
        with patch.object(ledger.code_repo, "claim_slot", return_value=False) as claim:
            result = _reserve(ledger, code)
        assert isinstance(result, Denied)
        assert result.error_code == DiscountErrorCode.CONCURRENT_USAGE_CONFLICT
        assert claim.call_count == 2

    def test_customer_limit_gives_the_slot_back(self, db_session, ledger, make_code):
        code = make_code(max_uses_total=10, max_uses_per_customer=1)
        customer_id = uuid4()

        assert isinstance(_reserve(ledger, code, customer_id=customer_id), Reservation)
        denied = _reserve(ledger, code, customer_id=customer_id)

        assert denied.error_code == DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED
        db_session.refresh(code)
        assert code.uses_claimed == 1

    def test_customer_matched_by_email(self, ledger, make_code):
        code = make_code()
        _reserve(ledger, code, customer_email="Jane@Example.com")
        denied = _reserve(ledger, code, customer_email="jane@example.com")
        assert denied.error_code == DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED

    def test_reservation_hold_window(self, ledger, make_code):
        code = make_code()
        hold_until = utc_now() + timedelta(hours=72)
        reservation = _reserve(ledger, code, hold_until=hold_until)
        assert reservation.expires_at == hold_until

    def test_read_side_counts_claims(self, ledger, make_code):
        code = make_code(max_uses_per_customer=None)
        customer_id = uuid4()
        _reserve(ledger, code, customer_id=customer_id)
        _reserve(ledger, code)
        assert ledger.uses_claimed(code.id) == 2
        assert ledger.customer_claims(code.id, str(customer_id), None) == 1
        assert ledger.customer_claims(code.id, None, None) == 0

    def test_customer_counter_tracks_claims(self, ledger, make_code):
        code = make_code(max_uses_per_customer=2)
        customer_id = uuid4()
        _reserve(ledger, code, customer_id=customer_id, customer_email="Jane@Example.com")

        by_id = ledger.usage_repo.get_customer_counter(code.id, f"id:{customer_id}")
        by_email = ledger.usage_repo.get_customer_counter(code.id, "email:jane@example.com")
        assert (by_id.claims, by_email.claims) == (1, 1)

    def test_customer_counter_starts_from_existing_claims(self, db_session, ledger, make_code):
        code = make_code(max_uses_per_customer=None)
        customer_id = uuid4()
        _reserve(ledger, code, customer_id=customer_id)
        code.max_uses_per_customer = 1
        db_session.commit()

        denied = _reserve(ledger, code, customer_id=customer_id)

        assert denied.error_code == DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED
        assert ledger.usage_repo.get_customer_counter(code.id, f"id:{customer_id}").claims == 1
        db_session.refresh(code)
        assert code.uses_claimed == 1

    def test_approval_hold_has_no_expiry(self, ledger, make_code):
        code = make_code()
        reservation = _reserve(ledger, code, hold_for_approval=True)

        assert reservation.expires_at is None
        assert ledger.release_expired(utc_now() + timedelta(days=30)) == 0
        usage = ledger.usage_repo.get_by_id(reservation.id)
        assert usage.status == UsageStatus.RESERVED.value


class TestSettleUsage:
    def test_commit_records_redemption(self, db_session, ledger, make_code):
        code = make_code(max_uses_total=5)
        reservation = _reserve(ledger, code)

        usage = ledger.commit_usage(reservation.id, Decimal("45.50"))

        assert usage.status == UsageStatus.COMMITTED.value
        assert usage.committed_at is not None
        db_session.refresh(code)
        assert code.times_used == 1
        assert code.uses_claimed == 1
        assert Decimal(str(code.total_discount_given)) == Decimal("45.50")

    def test_commit_twice_fails(self, ledger, make_code):
        reservation = _reserve(ledger, make_code())
        ledger.commit_usage(reservation.id)
        with pytest.raises(ValueError, match="no longer outstanding"):
            ledger.commit_usage(reservation.id)

    def test_commit_unknown_reservation(self, ledger):
        with pytest.raises(ValueError, match="not found"):
            ledger.commit_usage(uuid4())

    def test_release_returns_slot(self, db_session, ledger, make_code):
        code = make_code(max_uses_total=1)
        reservation = _reserve(ledger, code)

        assert ledger.release_usage(reservation.id, reason="cancelled") is True
        assert ledger.release_usage(reservation.id) is False

        db_session.refresh(code)
        assert code.uses_claimed == 0
        usage = ledger.usage_repo.get_by_id(reservation.id)
        assert usage.status == UsageStatus.RELEASED.value
        assert usage.release_reason == "cancelled"
        # The slot can be claimed again
        assert isinstance(_reserve(ledger, code), Reservation)

    def test_committed_usage_cannot_be_released(self, ledger, make_code):
        reservation = _reserve(ledger, make_code())
        ledger.commit_usage(reservation.id)
        assert ledger.release_usage(reservation.id) is False

    def test_release_unknown_reservation(self, ledger):
        assert ledger.release_usage(uuid4()) is False

    def test_release_expired(self, db_session, ledger, make_code):
        code = make_code(max_uses_per_customer=None)
        now = utc_now()
        stale = _reserve(ledger, code, hold_until=now - timedelta(minutes=1))
        fresh = _reserve(ledger, code, hold_until=now + timedelta(minutes=30))

        assert ledger.release_expired(now) == 1
        assert ledger.release_expired(now) == 0

        assert ledger.usage_repo.get_by_id(stale.id).status == UsageStatus.RELEASED.value
        assert ledger.usage_repo.get_by_id(stale.id).release_reason == "expired"
        assert ledger.usage_repo.get_by_id(fresh.id).status == UsageStatus.RESERVED.value
        db_session.refresh(code)
        assert code.uses_claimed == 1

    def test_release_expired_drains_every_batch(self, ledger, make_code):
        code = make_code(max_uses_per_customer=None)
        now = utc_now()
        for _ in range(5):
            _reserve(ledger, code, hold_until=now - timedelta(minutes=1))

        fetch = ledger.usage_repo.get_expired_reservations
        with patch.object(
            ledger.usage_repo,
            "get_expired_reservations",
            side_effect=lambda at: fetch(at, limit=2),
        ):
            assert ledger.release_expired(now) == 5

    def test_release_gives_customer_claim_back(self, ledger, make_code):
        code = make_code(max_uses_per_customer=1)
        customer_id = uuid4()
        reservation = _reserve(ledger, code, customer_id=customer_id)

        ledger.release_usage(reservation.id)

        assert ledger.usage_repo.get_customer_counter(code.id, f"id:{customer_id}").claims == 0
        assert isinstance(_reserve(ledger, code, customer_id=customer_id), Reservation)


class TestPostPoints:
    @pytest.fixture
    def member(self, db_session):
        return CustomerLoyaltyRepository(db_session).create(
            organization_id=DEFAULT_ORG_ID,
            customer_id=uuid4(),
            referral_code="TESTCODE",
        )

    def test_balance_follows_transactions(self, ledger, member):
        earned = ledger.post_points(member, 300, LoyaltyTransactionType.EARN_PURCHASE)
        spent = ledger.post_points(member, -100, LoyaltyTransactionType.REDEEM)

        assert earned.balance_after == 300
        assert spent.balance_after == 200
        assert member.current_points == 200
        assert ledger.ledger_balance(member.id) == 200

    def test_overdraw_is_refused(self, ledger, member):
        ledger.post_points(member, 50, LoyaltyTransactionType.EARN_PURCHASE)
        with pytest.raises(LoyaltyError, match="Insufficient points"):
            ledger.post_points(member, -51, LoyaltyTransactionType.REDEEM)
        assert ledger.ledger_balance(member.id) == 50

    def test_zero_delta_is_refused(self, ledger, member):
        with pytest.raises(LoyaltyError):
            ledger.post_points(member, 0, LoyaltyTransactionType.ADJUST)
