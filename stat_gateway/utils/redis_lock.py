"""Shared Redis distributed lock helpers."""
from __future__ import annotations

import redis

from ..logging import logger

# Named lock timeout constants; use these instead of bare integers
LOCK_TIMEOUT_5MIN = 300
LOCK_TIMEOUT_10MIN = 600
LOCK_TIMEOUT_1HOUR = 3600


def _client() -> redis.Redis:
    from ..config import settings

    return redis.from_url(settings.redis_url)


def acquire_redis_lock(lock_name: str, timeout: int = LOCK_TIMEOUT_5MIN) -> bool:
    """Try to acquire a Redis lock. Returns True if acquired."""
    try:
        return bool(_client().set(lock_name, "1", nx=True, ex=timeout))
    except redis.RedisError as exc:
        logger.warning("redis_lock_failed", lock=lock_name, error=str(exc))
        return True  # Proceed anyway if Redis is down


def release_redis_lock(lock_name: str) -> None:
    """Release a Redis lock."""
    try:
        _client().delete(lock_name)
    except redis.RedisError as exc:
        logger.warning("redis_unlock_failed", lock=lock_name, error=str(exc))
