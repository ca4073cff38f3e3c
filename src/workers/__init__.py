"""Workers package for background job processing."""

from src.workers.retention_worker import (
    RETENTION_QUEUE,
    process_retention_job,
    process_retention_job_sync,
    queue_retention_purge,
)

__all__ = [
    "RETENTION_QUEUE",
    "process_retention_job",
    "process_retention_job_sync",
    "queue_retention_purge",
]
