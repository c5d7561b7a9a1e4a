"""
TTL handling for record storage keys.

Expiry of the hash is the authoritative notion of deletion: there is no
explicit delete operation, so existence of the key is what separates a live
record from a missing or lapsed one.
"""

import logging
import time

from redmodel.storage.handle import StorageHandle

logger = logging.getLogger(__name__)

# Metadata field written at creation so the hash exists before any attribute is set
CREATED_AT_FIELD = "__created_at"


class ExpirationManager:
    """
    Applies a model's TTL to its records' storage keys.

    Args:
        ttl: Seconds to live; None or non-positive means never expire
    """

    def __init__(self, ttl: int | None = None):
        self._ttl = ttl

    @property
    def ttl(self) -> int | None:
        return self._ttl if self._ttl and self._ttl > 0 else None

    def touch(self, handle: StorageHandle) -> None:
        """Mark the hash as created and start its TTL."""
        handle.set(CREATED_AT_FIELD, str(int(time.time())))
        self.apply_ttl(handle)

    def apply_ttl(self, handle: StorageHandle) -> None:
        """Set or refresh the TTL on the key; no-op without a positive TTL."""
        if self.ttl is None:
            return
        handle.expire(self.ttl)
        logger.debug(f"EXPIRE {handle.key} {self.ttl}")

    def exists(self, handle: StorageHandle) -> bool:
        return handle.exists()
