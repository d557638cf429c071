"""Tests for worker background tasks and cron job registration."""

import uuid
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from app.core import database as db_module
from app.models.discount_code_usage import UsageStatus
from app.models.idempotency_record import IdempotencyRecord
from app.models.shared import utc_now
from app.repositories.discount_code_repository import DiscountCodeRepository
from app.repositories.discount_code_usage_repository import DiscountCodeUsageRepository
from app.services.approval_workflow import SweepResult
from app.services.usage_ledger import UsageLedger
from app.worker import (
    WorkerSettings,
    purge_idempotency_records_task,
    release_expired_reservations_task,
    sweep_discount_approvals_task,
)
from tests.conftest import DEFAULT_ORG_ID


@pytest.fixture
def test_session_local():
    """Route the worker's sessions to the test database."""
    with patch("app.worker.SessionLocal", db_module.SessionLocal) as session_local:
        yield session_local


class TestSweepDiscountApprovalsTask:
    @pytest.mark.asyncio
    async def test_returns_sweep_counts(self):
        mock_workflow = MagicMock()
        mock_workflow.sweep.return_value = SweepResult(escalated=2, expired=1)

        with (
            patch("app.worker.SessionLocal") as mock_session_local,
            patch("app.worker.ApprovalWorkflow", return_value=mock_workflow),
        ):
            result = await sweep_discount_approvals_task({})

        assert result == {"escalated": 2, "expired": 1}
        mock_workflow.sweep.assert_called_once_with()
        mock_session_local.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_closes_session_on_failure(self):
        mock_workflow = MagicMock()
        mock_workflow.sweep.side_effect = RuntimeError("db gone")

        with (
            patch("app.worker.SessionLocal") as mock_session_local,
            patch("app.worker.ApprovalWorkflow", return_value=mock_workflow),
            pytest.raises(RuntimeError, match="db gone"),
        ):
            await sweep_discount_approvals_task({})

        mock_session_local.return_value.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_nothing_to_sweep(self, test_session_local):
        assert await sweep_discount_approvals_task({}) == {"escalated": 0, "expired": 0}


class TestReleaseExpiredReservationsTask:
    @pytest.mark.asyncio
    async def test_releases_stale_reservations(self, db_session, make_code, test_session_local):
        code = make_code(max_uses_total=5)
        ledger = UsageLedger(db_session)
        stale = ledger.reserve_usage(
            code.id,
            uuid.uuid4(),
            hold_until=utc_now() - timedelta(minutes=1),
            organization_id=DEFAULT_ORG_ID,
        )
        fresh = ledger.reserve_usage(
            code.id,
            uuid.uuid4(),
            hold_until=utc_now() + timedelta(minutes=30),
            organization_id=DEFAULT_ORG_ID,
        )

        assert await release_expired_reservations_task({}) == 1
        assert await release_expired_reservations_task({}) == 0

        db_session.expire_all()
        usage_repo = DiscountCodeUsageRepository(db_session)
        assert usage_repo.get_by_id(stale.id).status == UsageStatus.RELEASED.value
        assert usage_repo.get_by_id(fresh.id).status == UsageStatus.RESERVED.value
        assert DiscountCodeRepository(db_session).get_by_id(code.id).uses_claimed == 1

    @pytest.mark.asyncio
    async def test_closes_session_on_failure(self):
        mock_ledger = MagicMock()
        mock_ledger.release_expired.side_effect = RuntimeError("boom")

        with (
            patch("app.worker.SessionLocal") as mock_session_local,
            patch("app.worker.UsageLedger", return_value=mock_ledger),
            pytest.raises(RuntimeError),
        ):
            await release_expired_reservations_task({})

        mock_session_local.return_value.close.assert_called_once()


class TestPurgeIdempotencyRecordsTask:
    @pytest.mark.asyncio
    async def test_purges_old_records(self, db_session, test_session_local):
        old = IdempotencyRecord(
            organization_id=DEFAULT_ORG_ID,
            idempotency_key="old-key",
            request_method="POST",
            request_path="/v1/discounts/evaluate",
            created_at=utc_now() - timedelta(hours=48),
        )
        recent = IdempotencyRecord(
            organization_id=DEFAULT_ORG_ID,
            idempotency_key="recent-key",
            request_method="POST",
            request_path="/v1/discounts/evaluate",
        )
        db_session.add_all([old, recent])
        db_session.commit()

        assert await purge_idempotency_records_task({}) == 1

        remaining = db_session.query(IdempotencyRecord).all()
        assert [r.idempotency_key for r in remaining] == ["recent-key"]


class TestWorkerSettings:
    def test_functions_registered(self):
        names = {f.__name__ for f in WorkerSettings.functions}
        assert names == {
            "sweep_discount_approvals_task",
            "release_expired_reservations_task",
            "purge_idempotency_records_task",
        }

    def test_cron_jobs(self):
        assert len(WorkerSettings.cron_jobs) == 3
        approval_cron = next(
            job for job in WorkerSettings.cron_jobs if job.coroutine is sweep_discount_approvals_task
        )
        assert approval_cron.minute == {0}
