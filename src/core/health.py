"""Health checks for the database, Redis and the retention queue."""

import logging
import time
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from redis import Redis
from rq import Queue
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import APP_VERSION, Settings, get_settings

logger = logging.getLogger(__name__)

# The API cannot record consents without these
CRITICAL_COMPONENTS = frozenset({"database"})


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None


@dataclass
class HealthCheckResult:
    """Overall health check result."""

    status: HealthStatus
    components: list[ComponentHealth]
    version: str = APP_VERSION

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return {
            "status": self.status.value,
            "version": self.version,
            "components": {
                c.name: {
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                }
                for c in self.components
            },
        }


def overall_status(components: list[ComponentHealth]) -> HealthStatus:
    """Unhealthy if a critical component is down, degraded if any other is."""
    if all(c.status == HealthStatus.HEALTHY for c in components):
        return HealthStatus.HEALTHY
    if any(
        c.status == HealthStatus.UNHEALTHY and c.name in CRITICAL_COMPONENTS
        for c in components
    ):
        return HealthStatus.UNHEALTHY
    return HealthStatus.DEGRADED


class HealthCheckService:
    """Service for checking health of application dependencies."""

    def __init__(
        self,
        db_session: AsyncSession | None = None,
        settings: Settings | None = None,
        redis_client: Redis | None = None,  # type: ignore[type-arg]
    ) -> None:
        """Initialize health check service.

        Args:
            db_session: Database session for DB health checks
            settings: Application settings
            redis_client: Redis client; created from settings when omitted
        """
        self.db_session = db_session
        self.settings = settings or get_settings()
        self._redis = redis_client

    def _redis_client(self) -> Redis:  # type: ignore[type-arg]
        if self._redis is None:
            self._redis = Redis.from_url(str(self.settings.redis_url), socket_timeout=5)
        return self._redis

    async def check_database(self) -> ComponentHealth:
        """Check database connectivity."""
        if self.db_session is None:
            return ComponentHealth(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message="No database session available",
            )

        start = time.perf_counter()
        try:
            result = await self.db_session.execute(text("SELECT 1"))
            result.scalar()
        except Exception as e:
            logger.warning(f"Database health check failed: {e}")
            return ComponentHealth(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message=str(e),
            )
        return ComponentHealth(
            name="database",
            status=HealthStatus.HEALTHY,
            message="Connected",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    async def check_redis(self) -> ComponentHealth:
        """Check Redis connectivity."""
        start = time.perf_counter()
        try:
            self._redis_client().ping()
        except Exception as e:
            logger.warning(f"Redis health check failed: {e}")
            return ComponentHealth(
                name="redis",
                status=HealthStatus.UNHEALTHY,
                message=str(e),
            )
        return ComponentHealth(
            name="redis",
            status=HealthStatus.HEALTHY,
            message="Connected",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    async def check_retention_queue(self) -> ComponentHealth:
        """Report how many purge jobs are waiting."""
        # Imported here: the worker module pulls in the service layer
        from src.workers.retention_worker import RETENTION_QUEUE

        try:
            queue = Queue(RETENTION_QUEUE, connection=self._redis_client())
            pending = queue.count
        except Exception as e:
            logger.warning(f"Retention queue health check failed: {e}")
            return ComponentHealth(
                name="retention_queue",
                status=HealthStatus.UNHEALTHY,
                message=str(e),
            )
        return ComponentHealth(
            name="retention_queue",
            status=HealthStatus.HEALTHY,
            message=f"{pending} job(s) pending",
        )

    async def check_all(self) -> HealthCheckResult:
        """Check all dependencies and return overall health."""
        components = [
            await self.check_database(),
            await self.check_redis(),
            await self.check_retention_queue(),
        ]
        return HealthCheckResult(status=overall_status(components), components=components)

    async def check_readiness(self) -> HealthCheckResult:
        """Check if the application can serve traffic (database and Redis)."""
        components = [
            await self.check_database(),
            await self.check_redis(),
        ]
        return HealthCheckResult(status=overall_status(components), components=components)
