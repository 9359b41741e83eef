"""JSON response cache over Redis.

A Redis outage must never fail a read, so every failure is logged and
treated as a miss (or a skipped write).
"""

from __future__ import annotations

import json
from typing import Any

import redis

from ..config import settings
from ..logging import logger


class ResponseCache:
    def __init__(self, client: redis.Redis | None = None, prefix: str | None = None) -> None:
        self._client = client
        self.prefix = prefix or settings.cache_config.key_prefix

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(settings.redis_url)
        return self._client

    def key(self, *parts: str) -> str:
        return ":".join([self.prefix, *parts])

    def get(self, key: str) -> Any | None:
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("cache_get_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> bool:
        try:
            self.client.set(key, json.dumps(value), ex=ttl_seconds)
        except (redis.RedisError, TypeError) as exc:
            logger.warning("cache_set_failed", key=key, error=str(exc))
            return False
        return True
