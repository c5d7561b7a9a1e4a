"""
Storage handles and their resolution.

A record keeps its typed fields and its storage binding under separate
names: ``record.attributes`` is the plain field mapping, ``record.storage``
is the StorageHandle resolved here. The handle is built on the first
persistence-related operation and memoized on the instance.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping

from redmodel.core.errors import MisconfigurationError
from redmodel.core.protocols import HashStore

if TYPE_CHECKING:
    from redmodel.record import Record

logger = logging.getLogger(__name__)


class StorageHandle:
    """Binding between one record and one Redis hash key."""

    def __init__(self, store: HashStore, key: str):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    @property
    def store(self) -> HashStore:
        return self._store

    def get(self, field: str) -> str | None:
        return self._store.hget(self._key, field)

    def set(self, field: str, value: str) -> None:
        self._store.hset(self._key, {field: value})

    def update(self, mapping: Mapping[str, str]) -> None:
        """Write several fields in one round-trip."""
        if mapping:
            self._store.hset(self._key, mapping)

    def delete_fields(self, *fields: str) -> int:
        return self._store.hdel(self._key, *fields) if fields else 0

    def to_dict(self) -> dict[str, str]:
        return self._store.hgetall(self._key)

    def exists(self) -> bool:
        return self._store.exists(self._key) > 0

    def expire(self, seconds: int) -> bool:
        return self._store.expire(self._key, seconds)

    def ttl(self) -> int:
        return self._store.ttl(self._key)

    def __repr__(self) -> str:
        return f"StorageHandle(key={self._key!r})"


def build_key(template: Any, record: Record) -> str:
    """
    Render a record's storage key from the model's key template.

    Args:
        template: ``str.format`` template over field values, or a callable
        record: Record the key belongs to

    Returns:
        The storage key

    Raises:
        MisconfigurationError: If no template is set or it renders empty
    """
    model = type(record).__name__
    if template is None:
        raise MisconfigurationError(
            f"{model} has no storage key; set RecordOptions(key=...)"
        )

    if callable(template):
        key = template(record)
    else:
        try:
            key = template.format(**record.attributes)
        except (KeyError, IndexError) as e:
            raise MisconfigurationError(
                f"Storage key template {template!r} of {model} references unknown field {e}"
            ) from e

    if not key:
        raise MisconfigurationError(f"Storage key of {model} rendered empty")
    return str(key)


def resolve(record: Record) -> StorageHandle:
    """
    Return the StorageHandle backing a record, resolving it once.

    Raises:
        MisconfigurationError: If the model has no key template or no usable store
    """
    handle = record._storage
    if handle is not None:
        return handle

    descriptor = type(record).__descriptor__
    store = descriptor.store
    if not isinstance(store, HashStore):
        raise MisconfigurationError(
            f"{descriptor.model_name} store {store!r} is not a hash store"
        )

    handle = StorageHandle(store, build_key(descriptor.options.key, record))
    record._storage = handle
    logger.debug(f"Resolved {descriptor.model_name}#{record.id} -> {handle.key}")
    return handle
