"""Tests for AuditLog model, AuditLogRepository, and AuditService."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.repositories.audit_log_repository import AuditLogRepository
from app.schemas.audit_log import AuditLogResponse
from app.services.audit_service import AuditResource, AuditService, snapshot
from tests.conftest import DEFAULT_ORG_ID, OTHER_ORG_ID


@pytest.fixture
def repo(db_session):
    """Create an AuditLogRepository instance."""
    return AuditLogRepository(db_session)


@pytest.fixture
def service(db_session):
    """Create an AuditService instance."""
    return AuditService(db_session)


def _trail(repo: AuditLogRepository, resource_type: AuditResource, resource_id):
    return repo.get_all(DEFAULT_ORG_ID, resource_type=resource_type.value, resource_id=resource_id)


# ---------------------------------------------------------------------------
# Repository tests
# ---------------------------------------------------------------------------


class TestAuditLogRepository:
    def test_create(self, repo):
        resource_id = uuid4()
        log = repo.create(
            organization_id=DEFAULT_ORG_ID,
            resource_type="discount_code",
            resource_id=resource_id,
            action="created",
            changes={"discount_value": "10.00"},
            actor_type="user",
            actor_id="ops@example.com",
            metadata={"source": "test"},
        )
        assert log.id is not None
        assert log.organization_id == DEFAULT_ORG_ID
        assert log.resource_id == resource_id
        assert log.changes == {"discount_value": "10.00"}
        assert log.metadata_ == {"source": "test"}
        assert log.created_at is not None

    def test_filters_and_count(self, repo):
        code_id = uuid4()
        for action in ("created", "updated"):
            repo.create(
                organization_id=DEFAULT_ORG_ID,
                resource_type="discount_code",
                resource_id=code_id,
                action=action,
                changes={},
                actor_type="user",
            )
        repo.create(
            organization_id=DEFAULT_ORG_ID,
            resource_type="approval_request",
            resource_id=uuid4(),
            action="status_changed",
            changes={},
            actor_type="system",
        )
        repo.create(
            organization_id=OTHER_ORG_ID,
            resource_type="discount_code",
            resource_id=uuid4(),
            action="created",
            changes={},
            actor_type="user",
        )

        assert repo.count(DEFAULT_ORG_ID) == 3
        assert repo.count(DEFAULT_ORG_ID, resource_type="discount_code") == 2
        assert repo.count(DEFAULT_ORG_ID, resource_id=code_id, action="updated") == 1
        assert repo.count(DEFAULT_ORG_ID, actor_type="system") == 1
        assert len(repo.get_all(DEFAULT_ORG_ID, skip=1, limit=1)) == 1
        assert repo.count(OTHER_ORG_ID) == 1


# ---------------------------------------------------------------------------
# Service tests
# ---------------------------------------------------------------------------


class TestAuditService:
    def test_log_create(self, service, repo):
        resource_id = uuid4()
        service.log_create(
            AuditResource.DISCOUNT_CODE,
            resource_id,
            DEFAULT_ORG_ID,
            actor_id="ops@example.com",
            data={"code": "SUMMER10", "discount_value": Decimal("10.00")},
        )
        logs = _trail(repo, AuditResource.DISCOUNT_CODE, resource_id)
        assert len(logs) == 1
        assert logs[0].action == "created"
        assert logs[0].actor_type == "user"
        assert logs[0].changes == {"code": "SUMMER10", "discount_value": "10.00"}

    def test_log_update_diffs_fields(self, service, repo):
        resource_id = uuid4()
        service.log_update(
            AuditResource.AUTOMATIC_RULE,
            resource_id,
            DEFAULT_ORG_ID,
            old_data={"priority": 1, "discount_value": Decimal("5"), "name": "Big order"},
            new_data={"priority": 10, "discount_value": Decimal("5"), "name": "Big order"},
        )
        logs = _trail(repo, AuditResource.AUTOMATIC_RULE, resource_id)
        assert len(logs) == 1
        assert logs[0].changes == {"priority": {"old": 1, "new": 10}}

    def test_log_update_no_changes_skips(self, service, repo):
        resource_id = uuid4()
        service.log_update(
            AuditResource.VOLUME_TIER,
            resource_id,
            DEFAULT_ORG_ID,
            old_data={"name": "Order size"},
            new_data={"name": "Order size"},
        )
        assert _trail(repo, AuditResource.VOLUME_TIER, resource_id) == []

    def test_log_update_with_added_and_removed_fields(self, service, repo):
        resource_id = uuid4()
        service.log_update(
            AuditResource.SEASONAL_CAMPAIGN,
            resource_id,
            DEFAULT_ORG_ID,
            old_data={"banner_text": "Spring"},
            new_data={"promo_code": "SPRING15"},
        )
        logs = _trail(repo, AuditResource.SEASONAL_CAMPAIGN, resource_id)
        assert logs[0].changes == {
            "banner_text": {"old": "Spring", "new": None},
            "promo_code": {"old": None, "new": "SPRING15"},
        }

    def test_log_status_change(self, service, repo):
        resource_id = uuid4()
        service.log_status_change(
            AuditResource.APPROVAL_REQUEST,
            resource_id,
            DEFAULT_ORG_ID,
            old_status="pending",
            new_status="approved",
            actor_type="user",
            actor_id="manager@example.com",
            metadata={"approved_amount": Decimal("120.50")},
        )
        log = _trail(repo, AuditResource.APPROVAL_REQUEST, resource_id)[0]
        assert log.action == "status_changed"
        assert log.changes == {"status": {"old": "pending", "new": "approved"}}
        assert log.actor_id == "manager@example.com"
        assert log.metadata_ == {"approved_amount": "120.50"}

    def test_log_status_change_defaults(self, service, repo):
        resource_id = uuid4()
        service.log_status_change(
            AuditResource.APPROVAL_REQUEST,
            resource_id,
            DEFAULT_ORG_ID,
            old_status="pending",
            new_status="escalated",
        )
        log = _trail(repo, AuditResource.APPROVAL_REQUEST, resource_id)[0]
        assert log.actor_type == "system"
        assert log.metadata_ is None


class TestSnapshot:
    def test_serializes_values(self):
        class Color(str, Enum):
            RED = "red"

        identifier = uuid4()
        obj = SimpleNamespace(
            amount=Decimal("12.50"),
            ref=identifier,
            at=datetime(2026, 7, 1, 12, 0, tzinfo=UTC),
            color=Color.RED,
            tags=["a"],
        )
        assert snapshot(obj, ["amount", "ref", "at", "color", "tags", "missing"]) == {
            "amount": "12.50",
            "ref": str(identifier),
            "at": "2026-07-01T12:00:00+00:00",
            "color": "red",
            "tags": ["a"],
            "missing": None,
        }


class TestAuditLogSchema:
    def test_response_from_model(self, repo):
        log = repo.create(
            organization_id=DEFAULT_ORG_ID,
            resource_type="discount_settings",
            resource_id=uuid4(),
            action="created",
            changes={"max_combined_percent": "50"},
            actor_type="user",
            metadata={"note": "initial"},
        )
        response = AuditLogResponse.model_validate(log)
        assert response.resource_type == "discount_settings"
        assert response.metadata == {"note": "initial"}
        assert response.model_dump()["metadata"] == {"note": "initial"}
