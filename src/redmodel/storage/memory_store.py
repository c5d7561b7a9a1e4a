"""
In-memory hash store.

Used for local testing and for processes that do not need a shared Redis.
Mirrors the Redis semantics the record layer depends on: hashes vanish when
their last field is deleted, and keys expire lazily on access.
"""

import logging
import threading
import time
from typing import Callable, Mapping

logger = logging.getLogger(__name__)


class InMemoryHashStore:
    """
    Process-local hash store with TTL support.

    Thread-safe with a single lock. Expiry is measured on an injectable
    monotonic clock so tests can advance time without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Initialize in-memory store.

        Args:
            clock: Returns the current time in seconds
        """
        self._hashes: dict[str, dict[str, str]] = {}
        self._counters: dict[str, int] = {}
        self._expiry: dict[str, float] = {}
        self._clock = clock
        self._lock = threading.Lock()

    def _purge_if_expired(self, key: str) -> None:
        deadline = self._expiry.get(key)
        if deadline is not None and self._clock() >= deadline:
            self._hashes.pop(key, None)
            self._counters.pop(key, None)
            del self._expiry[key]
            logger.debug(f"Expired key {key}")

    def _present(self, key: str) -> bool:
        self._purge_if_expired(key)
        return key in self._hashes or key in self._counters

    def incr(self, key: str) -> int:
        with self._lock:
            self._purge_if_expired(key)
            if key in self._hashes:
                raise TypeError(f"Key {key} holds a hash, not a counter")
            value = self._counters.get(key, 0) + 1
            self._counters[key] = value
            return value

    def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        with self._lock:
            self._purge_if_expired(key)
            if key in self._counters:
                raise TypeError(f"Key {key} holds a counter, not a hash")
            fields = self._hashes.setdefault(key, {})
            added = sum(1 for name in mapping if name not in fields)
            fields.update({name: str(value) for name, value in mapping.items()})
            return added

    def hget(self, key: str, field: str) -> str | None:
        with self._lock:
            self._purge_if_expired(key)
            return self._hashes.get(key, {}).get(field)

    def hgetall(self, key: str) -> dict[str, str]:
        with self._lock:
            self._purge_if_expired(key)
            return dict(self._hashes.get(key, {}))

    def hdel(self, key: str, *fields: str) -> int:
        with self._lock:
            self._purge_if_expired(key)
            stored = self._hashes.get(key)
            if not stored:
                return 0
            removed = sum(1 for name in fields if stored.pop(name, None) is not None)
            if not stored:
                del self._hashes[key]
                self._expiry.pop(key, None)
            return removed

    def exists(self, key: str) -> int:
        with self._lock:
            return 1 if self._present(key) else 0

    def expire(self, key: str, seconds: int) -> bool:
        with self._lock:
            if not self._present(key):
                return False
            self._expiry[key] = self._clock() + seconds
            return True

    def ttl(self, key: str) -> int:
        with self._lock:
            if not self._present(key):
                return -2
            deadline = self._expiry.get(key)
            if deadline is None:
                return -1
            return max(int(round(deadline - self._clock())), 0)

    def delete(self, *keys: str) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._present(key):
                    removed += 1
                self._hashes.pop(key, None)
                self._counters.pop(key, None)
                self._expiry.pop(key, None)
            return removed

    def flush(self) -> None:
        """Drop every key."""
        with self._lock:
            self._hashes.clear()
            self._counters.clear()
            self._expiry.clear()

    def keys(self) -> list[str]:
        """Keys currently present."""
        with self._lock:
            for key in list(self._expiry):
                self._purge_if_expired(key)
            return sorted([*self._hashes, *self._counters])
