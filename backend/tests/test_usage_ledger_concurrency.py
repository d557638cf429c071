"""Concurrent reservations against a file-backed database, one session per thread."""

import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401
from app.core.database import Base
from app.models.discount_code import DiscountCode
from app.models.discount_code_usage import DiscountCodeUsage
from app.models.organization import Organization
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_code_usage_repository import DiscountCodeUsageRepository
from app.schemas.discount_code import DiscountCodeCreate
from app.services.discounts.errors import DiscountErrorCode
from app.services.usage_ledger import Denied, Reservation, UsageLedger
from tests.conftest import DEFAULT_ORG_ID

WORKERS = 8


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    with factory() as db:
        db.add(Organization(id=DEFAULT_ORG_ID, name="Race Organization"))
        db.commit()
    yield factory
    engine.dispose()


def _create_code(session_factory, **overrides):
    values = {
        "code": "RACE",
        "name": "Race promotion",
        "discount_type": "percent",
        "discount_value": Decimal("10"),
    }
    values.update(overrides)
    with session_factory() as db:
        code = DiscountCodeRepository(db).create(DiscountCodeCreate(**values), DEFAULT_ORG_ID)
        return code.id


def _race(session_factory, code_id, customers):
    """Reserve ``code_id`` once per entry of ``customers``, all threads released together."""
    barrier = threading.Barrier(len(customers))

    def reserve(customer_id):
        with session_factory() as db:
            barrier.wait()
            return UsageLedger(db).reserve_usage(
                code_id,
                order_id=uuid4(),
                customer_id=customer_id,
                order_amount=Decimal("600"),
                discount_amount=Decimal("60"),
                organization_id=DEFAULT_ORG_ID,
            )

    with ThreadPoolExecutor(max_workers=len(customers)) as pool:
        return list(pool.map(reserve, customers))


def _reserved_rows(session_factory, code_id):
    with session_factory() as db:
        return db.query(DiscountCodeUsage).filter(DiscountCodeUsage.discount_code_id == code_id).count()


class TestConcurrentReservations:
    def test_total_limit_holds_under_contention(self, session_factory):
        code_id = _create_code(session_factory, max_uses_total=3, max_uses_per_customer=None)

        results = _race(session_factory, code_id, [None] * WORKERS)

        reservations = [r for r in results if isinstance(r, Reservation)]
        denied = [r for r in results if isinstance(r, Denied)]
        assert len(reservations) == 3
        assert len(denied) == WORKERS - 3
        assert {d.error_code for d in denied} == {DiscountErrorCode.USAGE_LIMIT_EXCEEDED}
        with session_factory() as db:
            assert db.get(DiscountCode, code_id).uses_claimed == 3
        assert _reserved_rows(session_factory, code_id) == 3

    def test_distinct_customers_share_the_total(self, session_factory):
        code_id = _create_code(session_factory, max_uses_total=3, max_uses_per_customer=1)

        results = _race(session_factory, code_id, [uuid4() for _ in range(WORKERS)])

        assert sum(isinstance(r, Reservation) for r in results) == 3
        with session_factory() as db:
            assert db.get(DiscountCode, code_id).uses_claimed == 3

    def test_customer_limit_holds_under_contention(self, session_factory):
        code_id = _create_code(session_factory, max_uses_total=None, max_uses_per_customer=1)
        customer_id = uuid4()

        results = _race(session_factory, code_id, [customer_id] * WORKERS)

        reservations = [r for r in results if isinstance(r, Reservation)]
        denied = [r for r in results if isinstance(r, Denied)]
        assert len(reservations) == 1
        assert {d.error_code for d in denied} == {DiscountErrorCode.CUSTOMER_LIMIT_EXCEEDED}
        with session_factory() as db:
            assert db.get(DiscountCode, code_id).uses_claimed == 1
            counter = DiscountCodeUsageRepository(db).get_customer_counter(
                code_id, f"id:{customer_id}"
            )
            assert counter.claims == 1
        assert _reserved_rows(session_factory, code_id) == 1
