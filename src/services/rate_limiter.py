"""Rate limiter service using Redis."""

import logging
import uuid

from redis import Redis

from src.core.config import Settings, get_settings
from src.core.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Exception raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str,
        remaining: int = 0,
        reset_time: int = 0,
    ) -> None:
        super().__init__(message)
        self.remaining = remaining
        self.reset_time = reset_time


class RateLimiter:
    """Fixed window rate limiter with counters stored in Redis.

    Counters expire with the window, so an idle key costs nothing.
    """

    KEY_PREFIX = "consent_registry:rate_limit"
    DEFAULT_WINDOW_SECONDS = 3600  # 1 hour

    def __init__(
        self,
        redis_client: Redis | None = None,  # type: ignore[type-arg]
        settings: Settings | None = None,
        window_seconds: int | None = None,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            redis_client: Redis client instance. Defaults to the shared client.
            settings: Application settings. Defaults to get_settings().
            window_seconds: Window size in seconds. Defaults to 3600 (1 hour).
        """
        self.settings = settings or get_settings()
        self._redis: Redis | None = redis_client  # type: ignore[type-arg]
        self.window_seconds = window_seconds or self.DEFAULT_WINDOW_SECONDS

    @property
    def redis(self) -> Redis:  # type: ignore[type-arg]
        """Redis client, the shared one unless another was injected."""
        if self._redis is None:
            self._redis = get_redis_client()
        return self._redis

    def _make_key(self, key_type: str, identifier: str) -> str:
        return f"{self.KEY_PREFIX}:{key_type}:{identifier}"

    async def check_and_increment(
        self,
        key_type: str,
        identifier: uuid.UUID | str,
        max_requests: int,
    ) -> dict[str, int]:
        """Count one request and check it against the limit.

        Args:
            key_type: Type of rate limit (e.g., "capture")
            identifier: Unique identifier (e.g., website_id)
            max_requests: Maximum requests allowed in the window

        Returns:
            Dict with current_count, remaining, and reset_time

        Raises:
            RateLimitExceeded: If rate limit is exceeded
        """
        key = self._make_key(key_type, str(identifier))

        pipe = self.redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, self.window_seconds, nx=True)
        pipe.ttl(key)
        results = pipe.execute()

        new_count = int(results[0])
        ttl = results[2]
        reset_time = max(0, ttl) if ttl > 0 else self.window_seconds

        if new_count > max_requests:
            logger.warning(
                "Rate limit exceeded",
                extra={"limit_type": key_type, "identifier": str(identifier)},
            )
            raise RateLimitExceeded(
                f"Rate limit exceeded. Max {max_requests} requests per {self.window_seconds} seconds.",
                remaining=0,
                reset_time=reset_time,
            )

        return {
            "current_count": new_count,
            "remaining": max_requests - new_count,
            "reset_time": reset_time,
        }


class CaptureRateLimiter:
    """Per-website limit on public consent capture requests."""

    RATE_LIMIT_TYPE = "capture"

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._rate_limiter = rate_limiter or RateLimiter(settings=self.settings)

    @property
    def max_requests(self) -> int:
        """Maximum captures per website per hour from settings."""
        return self.settings.capture_rate_limit_per_hour

    async def check_and_consume(self, website_id: uuid.UUID) -> dict[str, int]:
        """Consume one capture for a website.

        Raises:
            RateLimitExceeded: If the website exhausted its hourly budget
        """
        return await self._rate_limiter.check_and_increment(
            key_type=self.RATE_LIMIT_TYPE,
            identifier=website_id,
            max_requests=self.max_requests,
        )
