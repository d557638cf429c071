from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from app.core.config import settings

# Shared by the API enqueue helpers and the worker
redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Get or create Redis pool for arq"""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Enqueue a task to the arq worker by function name."""
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_approval_sweep() -> Job:
    """Run the approval escalation/expiry sweep now instead of waiting for the hour."""
    return await enqueue_task("sweep_discount_approvals_task")


async def enqueue_release_expired_reservations() -> Job:
    """Free lapsed code reservations ahead of the periodic job."""
    return await enqueue_task("release_expired_reservations_task")
