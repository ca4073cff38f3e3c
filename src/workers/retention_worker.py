"""Retention worker that purges consents past the retention period."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from src.core.config import Settings, get_settings
from src.core.database import close_database, init_database, session_scope
from src.services.consent_service import ConsentService

logger = logging.getLogger(__name__)

RETENTION_QUEUE = "retention"
JOB_FUNCTION = "src.workers.retention_worker.process_retention_job_sync"


class RetentionPurgeError(Exception):
    """Raised when a retention purge job fails."""


def get_redis_connection(settings: Settings | None = None) -> Redis:  # type: ignore[type-arg]
    """Get Redis connection."""
    settings = settings or get_settings()
    return Redis.from_url(str(settings.redis_url))


def get_retention_queue(
    settings: Settings | None = None,
    queue_name: str = RETENTION_QUEUE,
) -> Queue:
    """Get the retention job queue.

    Args:
        settings: Application settings
        queue_name: Name of the queue

    Returns:
        RQ Queue instance
    """
    conn = get_redis_connection(settings)
    return Queue(queue_name, connection=conn)


async def process_retention_job(
    now: str | None = None,
    batch_size: int | None = None,
) -> dict[str, Any]:
    """Delete every consent older than the retention period.

    Args:
        now: ISO 8601 reference time; the current time when omitted
        batch_size: Rows per transaction; the configured size when omitted

    Returns:
        Dict with the deleted count and the cutoff used

    Raises:
        RetentionPurgeError: If the purge fails
    """
    reference = datetime.fromisoformat(now) if now else None
    logger.info("Starting retention purge job")

    try:
        async with session_scope() as db_session:
            result = await ConsentService(db_session).purge_expired(
                now=reference, batch_size=batch_size
            )
    except Exception as e:
        logger.exception(f"Retention purge job failed: {e}")
        raise RetentionPurgeError(f"Retention purge failed: {e}") from e

    return {
        "deleted_count": result.deleted_count,
        "cutoff": result.cutoff.isoformat(),
        "status": "completed",
    }


async def _run_with_database(
    now: str | None,
    batch_size: int | None,
) -> dict[str, Any]:
    # Each asyncio.run() gets a fresh loop, so the engine must be too
    init_database()
    try:
        return await process_retention_job(now, batch_size)
    finally:
        await close_database()


def queue_retention_purge(
    settings: Settings | None = None,
    delay: timedelta | None = None,
    reschedule: bool = False,
) -> str:
    """Queue a retention purge.

    Args:
        settings: Application settings
        delay: Run after this delay instead of as soon as possible
        reschedule: Queue the following run once this one finishes

    Returns:
        RQ job ID
    """
    queue = get_retention_queue(settings)
    job_kwargs: dict[str, Any] = {
        "reschedule": reschedule,
        "job_timeout": "1h",
        "result_ttl": 86400,  # Keep result for 24 hours
        "failure_ttl": 86400,  # Keep failed job info for 24 hours
    }

    if delay is None:
        rq_job = queue.enqueue(JOB_FUNCTION, **job_kwargs)
    else:
        rq_job = queue.enqueue_in(delay, JOB_FUNCTION, **job_kwargs)

    logger.info(f"Queued retention purge as RQ job {rq_job.id}")
    return str(rq_job.id)


def process_retention_job_sync(
    now: str | None = None,
    batch_size: int | None = None,
    reschedule: bool = False,
) -> dict[str, Any]:
    """Synchronous entry point for RQ.

    RQ doesn't natively support async functions, so this wrapper runs the
    purge in a fresh event loop. With reschedule, the next run is queued
    retention_purge_interval_hours later, even when this one failed.
    """
    try:
        result = asyncio.run(_run_with_database(now, batch_size))
    except Exception:
        if reschedule:
            try:
                _queue_next_run()
            except RedisError:
                # The purge error is the one to report
                logger.exception("Could not queue the next retention purge")
        raise

    if reschedule:
        _queue_next_run()
    return result


def _queue_next_run() -> None:
    settings = get_settings()
    queue_retention_purge(
        settings,
        delay=timedelta(hours=settings.retention_purge_interval_hours),
        reschedule=True,
    )
