"""Shared Redis client for request handlers."""

from functools import lru_cache

from redis import Redis

from src.core.config import get_settings


@lru_cache
def get_redis_client() -> Redis:  # type: ignore[type-arg]
    """Process-wide Redis client; every request shares its connection pool."""
    return Redis.from_url(str(get_settings().redis_url), socket_timeout=5)


def close_redis_client() -> None:
    """Close the shared client if one was created."""
    if get_redis_client.cache_info().currsize:
        get_redis_client().close()
        get_redis_client.cache_clear()
