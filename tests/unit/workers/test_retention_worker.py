"""Tests for the retention purge worker."""

from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.models.domain.consent import PurgeResult
from src.workers.retention_worker import (
    JOB_FUNCTION,
    RETENTION_QUEUE,
    RetentionPurgeError,
    get_retention_queue,
    process_retention_job,
    process_retention_job_sync,
    queue_retention_purge,
)


@pytest.fixture
def fake_session_scope() -> AsyncMock:
    """Patch session_scope to yield a mock session."""
    session = AsyncMock()

    @asynccontextmanager
    async def _scope():  # type: ignore[no-untyped-def]
        yield session

    with patch("src.workers.retention_worker.session_scope", _scope):
        yield session


class TestProcessRetentionJob:
    """Tests for process_retention_job."""

    async def test_purges_with_reference_time(self, fake_session_scope: AsyncMock) -> None:
        cutoff = datetime(2025, 1, 1, tzinfo=UTC)

        with patch("src.workers.retention_worker.ConsentService") as MockService:
            MockService.return_value.purge_expired = AsyncMock(
                return_value=PurgeResult(deleted_count=42, cutoff=cutoff)
            )

            result = await process_retention_job(
                now="2026-02-01T00:00:00+00:00", batch_size=500
            )

        MockService.assert_called_once_with(fake_session_scope)
        MockService.return_value.purge_expired.assert_awaited_once_with(
            now=datetime(2026, 2, 1, tzinfo=UTC), batch_size=500
        )
        assert result == {
            "deleted_count": 42,
            "cutoff": cutoff.isoformat(),
            "status": "completed",
        }

    async def test_failure_is_wrapped(self, fake_session_scope: AsyncMock) -> None:
        with patch("src.workers.retention_worker.ConsentService") as MockService:
            MockService.return_value.purge_expired = AsyncMock(
                side_effect=RuntimeError("connection reset")
            )

            with pytest.raises(RetentionPurgeError) as exc_info:
                await process_retention_job()

        assert "connection reset" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestQueueing:
    """Tests for queue helpers."""

    def test_get_retention_queue(self) -> None:
        settings = MagicMock()
        settings.redis_url = "redis://localhost:6379/0"

        with (
            patch("src.workers.retention_worker.Redis") as MockRedis,
            patch("src.workers.retention_worker.Queue") as MockQueue,
        ):
            queue = get_retention_queue(settings)

        MockRedis.from_url.assert_called_once_with("redis://localhost:6379/0")
        MockQueue.assert_called_once_with(
            RETENTION_QUEUE, connection=MockRedis.from_url.return_value
        )
        assert queue is MockQueue.return_value

    def test_queue_now(self) -> None:
        queue = MagicMock()
        queue.enqueue.return_value.id = "job-1"

        with patch("src.workers.retention_worker.get_retention_queue", return_value=queue):
            job_id = queue_retention_purge(MagicMock())

        assert job_id == "job-1"
        queue.enqueue.assert_called_once()
        assert queue.enqueue.call_args.args == (JOB_FUNCTION,)
        assert queue.enqueue.call_args.kwargs["reschedule"] is False
        queue.enqueue_in.assert_not_called()

    def test_queue_with_delay(self) -> None:
        queue = MagicMock()
        queue.enqueue_in.return_value.id = "job-2"

        with patch("src.workers.retention_worker.get_retention_queue", return_value=queue):
            job_id = queue_retention_purge(
                MagicMock(), delay=timedelta(hours=24), reschedule=True
            )

        assert job_id == "job-2"
        args, kwargs = queue.enqueue_in.call_args
        assert args == (timedelta(hours=24), JOB_FUNCTION)
        assert kwargs["reschedule"] is True
        queue.enqueue.assert_not_called()


class TestProcessRetentionJobSync:
    """Tests for the RQ entry point."""

    def test_runs_purge_without_reschedule(self) -> None:
        with (
            patch(
                "src.workers.retention_worker._run_with_database",
                new=AsyncMock(return_value={"deleted_count": 0}),
            ) as run,
            patch("src.workers.retention_worker.queue_retention_purge") as queue,
        ):
            result = process_retention_job_sync(batch_size=10)

        assert result == {"deleted_count": 0}
        run.assert_awaited_once_with(None, 10)
        queue.assert_not_called()

    def test_reschedules_after_interval(self) -> None:
        settings = MagicMock()
        settings.retention_purge_interval_hours = 24

        with (
            patch(
                "src.workers.retention_worker._run_with_database",
                new=AsyncMock(return_value={"deleted_count": 3}),
            ),
            patch("src.workers.retention_worker.get_settings", return_value=settings),
            patch("src.workers.retention_worker.queue_retention_purge") as queue,
        ):
            process_retention_job_sync(reschedule=True)

        queue.assert_called_once_with(
            settings, delay=timedelta(hours=24), reschedule=True
        )

    def test_reschedules_even_when_purge_fails(self) -> None:
        settings = MagicMock()
        settings.retention_purge_interval_hours = 6

        with (
            patch(
                "src.workers.retention_worker._run_with_database",
                new=AsyncMock(side_effect=RetentionPurgeError("boom")),
            ),
            patch("src.workers.retention_worker.get_settings", return_value=settings),
            patch("src.workers.retention_worker.queue_retention_purge") as queue,
        ):
            with pytest.raises(RetentionPurgeError):
                process_retention_job_sync(reschedule=True)

        queue.assert_called_once_with(settings, delay=timedelta(hours=6), reschedule=True)

    def test_purge_error_survives_failed_reschedule(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        settings = MagicMock()
        settings.retention_purge_interval_hours = 24

        with (
            patch(
                "src.workers.retention_worker._run_with_database",
                new=AsyncMock(side_effect=RetentionPurgeError("database down")),
            ),
            patch("src.workers.retention_worker.get_settings", return_value=settings),
            patch(
                "src.workers.retention_worker.queue_retention_purge",
                side_effect=RedisConnectionError("redis down"),
            ),
        ):
            with pytest.raises(RetentionPurgeError, match="database down"):
                process_retention_job_sync(reschedule=True)

        assert "Could not queue the next retention purge" in caplog.text

    def test_reschedule_failure_after_success_is_raised(self) -> None:
        settings = MagicMock()
        settings.retention_purge_interval_hours = 24

        with (
            patch(
                "src.workers.retention_worker._run_with_database",
                new=AsyncMock(return_value={"deleted_count": 1}),
            ),
            patch("src.workers.retention_worker.get_settings", return_value=settings),
            patch(
                "src.workers.retention_worker.queue_retention_purge",
                side_effect=RedisConnectionError("redis down"),
            ),
        ):
            with pytest.raises(RedisConnectionError):
                process_retention_job_sync(reschedule=True)
