"""
Redis-backed hash store.

Thin synchronous wrapper over redis-py. The client is created lazily on
first use and memoized for the lifetime of the store. No pooling, retry or
fallback is layered on top: connection errors propagate to the caller.
"""

import logging
import threading
from typing import Any, Mapping

import redis

from redmodel.core.config import get_settings

logger = logging.getLogger(__name__)


class RedisHashStore:
    """
    Hash store talking to a single Redis endpoint.

    Responses are decoded to str so hash fields round-trip as text.
    """

    def __init__(self, redis_url: str, client: Any | None = None):
        """
        Initialize Redis store.

        Args:
            redis_url: Redis connection URL
            client: Pre-built client (skips lazy connection)
        """
        self._redis_url = redis_url
        self._client = client

    @property
    def url(self) -> str:
        return self._redis_url

    @property
    def client(self) -> redis.Redis:
        """Redis client, connected on first access."""
        if self._client is None:
            self._client = redis.Redis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            logger.info(f"Redis store connected: {self._redis_url}")
        return self._client

    def incr(self, key: str) -> int:
        value = int(self.client.incr(key))
        logger.debug(f"INCR {key} -> {value}")
        return value

    def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        if not mapping:
            return 0
        return int(self.client.hset(key, mapping=dict(mapping)))

    def hget(self, key: str, field: str) -> str | None:
        return self.client.hget(key, field)

    def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.client.hgetall(key))

    def hdel(self, key: str, *fields: str) -> int:
        if not fields:
            return 0
        return int(self.client.hdel(key, *fields))

    def exists(self, key: str) -> int:
        return int(self.client.exists(key))

    def expire(self, key: str, seconds: int) -> bool:
        return bool(self.client.expire(key, seconds))

    def ttl(self, key: str) -> int:
        return int(self.client.ttl(key))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(self.client.delete(*keys))

    def close(self) -> None:
        """Close Redis connection."""
        if self._client is not None:
            try:
                self._client.close()
                logger.info("Redis store connection closed")
            finally:
                self._client = None

    def __repr__(self) -> str:
        return f"RedisHashStore({self._redis_url!r})"


# =============================================================================
# Global Store Instance
# =============================================================================

_store_instance: Any | None = None
_store_lock = threading.Lock()


def get_store() -> Any:
    """
    Get or create the process-wide hash store.

    Models without a store in their options persist here. Defaults to a
    RedisHashStore on ``Settings.redis_url``.
    """
    global _store_instance

    if _store_instance is None:
        with _store_lock:
            if _store_instance is None:
                _store_instance = RedisHashStore(get_settings().redis_url)

    return _store_instance


def set_store(store: Any) -> None:
    """Install a process-wide hash store (e.g. an InMemoryHashStore)."""
    global _store_instance

    with _store_lock:
        _store_instance = store


def reset_store() -> None:
    """Reset store instance (for testing)."""
    global _store_instance

    with _store_lock:
        if isinstance(_store_instance, RedisHashStore):
            _store_instance.close()
        _store_instance = None
