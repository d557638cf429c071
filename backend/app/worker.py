import logging
from typing import Any

from arq import cron

from app.core.config import settings
from app.core.database import SessionLocal
from app.repositories.idempotency_repository import IdempotencyRepository
from app.services.approval_workflow import ApprovalWorkflow
from app.services.usage_ledger import UsageLedger
from app.tasks import redis_settings

logger = logging.getLogger(__name__)


async def sweep_discount_approvals_task(ctx: dict[str, Any]) -> dict[str, int]:
    """Background task: escalate stale approval requests and expire abandoned ones.

    Runs hourly. Re-running it changes nothing that an earlier run already changed.
    """
    db = SessionLocal()
    try:
        result = ApprovalWorkflow(db).sweep()
        return {"escalated": result.escalated, "expired": result.expired}
    except Exception:
        logger.exception("Discount approval sweep failed")
        raise
    finally:
        db.close()


async def release_expired_reservations_task(ctx: dict[str, Any]) -> int:
    """Background task: give back promo code slots held by reservations that were never committed.

    Runs every 5 minutes.
    """
    db = SessionLocal()
    try:
        return UsageLedger(db).release_expired()
    except Exception:
        logger.exception("Releasing expired discount code reservations failed")
        raise
    finally:
        db.close()


async def purge_idempotency_records_task(ctx: dict[str, Any]) -> int:
    """Background task: delete idempotency records past their retention window.

    Runs daily.
    """
    db = SessionLocal()
    try:
        count = IdempotencyRepository(db).purge_older_than(settings.IDEMPOTENCY_RETENTION_HOURS)
        if count > 0:
            logger.info("Purged %d idempotency records", count)
        return count
    finally:
        db.close()


class WorkerSettings:
    functions = [
        sweep_discount_approvals_task,
        release_expired_reservations_task,
        purge_idempotency_records_task,
    ]
    cron_jobs = [
        cron(sweep_discount_approvals_task, minute={0}),  # hourly
        cron(
            release_expired_reservations_task,
            minute={0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55},
        ),
        cron(purge_idempotency_records_task, hour=3, minute=0),  # daily
    ]
    redis_settings = redis_settings
