"""Hash stores, storage handles and TTL management."""

from redmodel.storage.expiration import CREATED_AT_FIELD, ExpirationManager
from redmodel.storage.handle import StorageHandle, build_key, resolve
from redmodel.storage.memory_store import InMemoryHashStore
from redmodel.storage.redis_store import RedisHashStore, get_store, reset_store, set_store

__all__ = [
    "CREATED_AT_FIELD",
    "ExpirationManager",
    "StorageHandle",
    "build_key",
    "resolve",
    "InMemoryHashStore",
    "RedisHashStore",
    "get_store",
    "reset_store",
    "set_store",
]
