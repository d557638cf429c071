"""Shared test fixtures for all test modules."""

import contextlib
import uuid
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core import database as db_module
from app.core.database import Base, get_db
from app.models.organization import Organization
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_settings_repository import DiscountSettingsRepository
from app.schemas.discount_code import DiscountCodeCreate
from app.schemas.discount_settings import DiscountSettingsUpsert, RoleLimit

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known default organization ID used across all tests
DEFAULT_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
OTHER_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")


def _seed_organizations(session: Session) -> None:
    """Insert the default organization and a second tenant for isolation tests."""
    for org_id, name in (
        (DEFAULT_ORG_ID, "Default Test Organization"),
        (OTHER_ORG_ID, "Other Test Organization"),
    ):
        if session.query(Organization).filter(Organization.id == org_id).first() is None:
            session.add(Organization(id=org_id, name=name))
    session.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_organizations(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def default_org_id():
    """Return the default organization ID for tests."""
    return DEFAULT_ORG_ID


@pytest.fixture
def db_session():
    """Create a database session for direct service and repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def client():
    """Create test client."""
    from app.main import app

    return TestClient(app)


@pytest.fixture
def make_code(db_session):
    """Factory creating promo codes in the default organization."""

    def _make(code: str = "SUMMER10", organization_id=DEFAULT_ORG_ID, **overrides):
        values = {
            "code": code,
            "name": f"{code} promotion",
            "discount_type": "percent",
            "discount_value": Decimal("10"),
        }
        values.update(overrides)
        return DiscountCodeRepository(db_session).create(
            DiscountCodeCreate(**values), organization_id
        )

    return _make


@pytest.fixture
def sales_limits(db_session):
    """Approval limits with a 10% / $200 sales ceiling."""
    return DiscountSettingsRepository(db_session).upsert(
        DEFAULT_ORG_ID,
        DiscountSettingsUpsert(
            role_limits={
                "sales": RoleLimit(max_percent=Decimal("10"), max_amount=Decimal("200")),
                "manager": RoleLimit(max_percent=Decimal("25"), max_amount=Decimal("1000")),
            },
            escalation_after_hours=24,
            auto_reject_after_hours=72,
            escalation_approver_id="director@example.com",
        ),
    )
