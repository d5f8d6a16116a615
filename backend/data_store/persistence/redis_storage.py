"""
Redis-backed key-value storage.

Lets several processes (CLI, workers) share one set of collections.
Every Redis error is reported as a failed read/write, never raised.
"""

from __future__ import annotations

from typing import Optional

import redis

from shared.config.settings import settings
from shared.config.logging import get_logger
from data_store.persistence.base import PersistenceResult

logger = get_logger(__name__)


def get_redis_client(url: str) -> redis.Redis:
    """Client for the given URL; replies are decoded to str."""
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
        health_check_interval=30,
    )


class RedisStorage:
    """Stores each collection blob under "<prefix>:<key>"."""

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self._client = client
        self._prefix = prefix

    def full_key(self, key: str) -> str:
        return f"{self._prefix}:{key}" if self._prefix else key

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._client.get(self.full_key(key))
        except redis.RedisError as exc:
            logger.warning("Redis read failed", key=key, error=str(exc))
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value

    def set(self, key: str, value: str) -> PersistenceResult:
        try:
            self._client.set(self.full_key(key), value)
        except redis.RedisError as exc:
            return PersistenceResult.failure(exc)
        return PersistenceResult.success()

    def delete(self, key: str) -> PersistenceResult:
        try:
            self._client.delete(self.full_key(key))
        except redis.RedisError as exc:
            return PersistenceResult.failure(exc)
        return PersistenceResult.success()
