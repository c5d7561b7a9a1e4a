"""Tests for storage handles, key resolution and TTL management."""

from unittest.mock import patch

import pytest

from redmodel import MisconfigurationError, Record, RecordOptions
from redmodel.storage import (
    CREATED_AT_FIELD,
    ExpirationManager,
    InMemoryHashStore,
    StorageHandle,
    build_key,
    resolve,
)


class Attempt(Record):
    __options__ = RecordOptions(key="collection::attempt:{id}")

    name: str | None = None


class CallableKeyed(Record):
    __options__ = RecordOptions(key=lambda record: f"callable:{record.id}:{record.name}")

    name: str | None = None


class Unkeyed(Record):
    name: str | None = None


class BadTemplate(Record):
    __options__ = RecordOptions(key="bad:{missing}")


class EmptyKey(Record):
    __options__ = RecordOptions(key=lambda record: "")


class NotAStore(Record):
    __options__ = RecordOptions(key="x:{id}", store=object())


OWN_STORE = InMemoryHashStore()


class OwnStore(Record):
    __options__ = RecordOptions(key="own:{id}", store=OWN_STORE)


class TestStorageHandle:
    """Tests for field-level access through a handle."""

    @pytest.fixture
    def handle(self, store):
        return StorageHandle(store, "h:1")

    def test_set_get(self, handle):
        handle.set("name", "x")
        assert handle.get("name") == "x"
        assert handle.exists()

    def test_update_and_to_dict(self, handle):
        handle.update({"a": "1", "b": "2"})
        assert handle.to_dict() == {"a": "1", "b": "2"}

    def test_update_empty_is_noop(self, handle, store):
        handle.update({})
        assert not handle.exists()

    def test_delete_fields(self, handle):
        handle.update({"a": "1", "b": "2"})
        assert handle.delete_fields("a") == 1
        assert handle.delete_fields() == 0
        assert handle.to_dict() == {"b": "2"}

    def test_expire_and_ttl(self, handle, clock):
        handle.set("a", "1")
        handle.expire(5)
        clock.advance(2)
        assert handle.ttl() == 3
        clock.advance(3)
        assert not handle.exists()


class TestBuildKey:
    """Tests for key templates."""

    def test_format_template(self):
        assert build_key("collection::attempt:{id}", Attempt(id=4)) == "collection::attempt:4"

    def test_callable_template(self):
        record = CallableKeyed(id=2, name="n")
        assert build_key(CallableKeyed.options().key, record) == "callable:2:n"

    def test_missing_template(self):
        with pytest.raises(MisconfigurationError, match="Unkeyed has no storage key"):
            build_key(None, Unkeyed(id=1))

    def test_unknown_field(self):
        with pytest.raises(MisconfigurationError, match="unknown field"):
            build_key("bad:{missing}", BadTemplate(id=1))

    def test_empty_key(self):
        with pytest.raises(MisconfigurationError, match="rendered empty"):
            build_key(lambda record: "", EmptyKey(id=1))


class TestResolve:
    """Tests for per-instance handle resolution."""

    def test_resolves_against_default_store(self, store):
        handle = resolve(Attempt(id=1))
        assert handle.key == "collection::attempt:1"
        assert handle.store is store

    def test_memoized_per_instance(self, store):
        record = Attempt(id=1)
        first = resolve(record)
        with patch("redmodel.storage.handle.build_key") as build:
            assert resolve(record) is first
        build.assert_not_called()
        assert record.storage is first

    def test_separate_instances_separate_handles(self, store):
        assert resolve(Attempt(id=1)) is not resolve(Attempt(id=1))

    def test_model_store_wins(self, store):
        assert resolve(OwnStore(id=1)).store is OWN_STORE

    def test_unkeyed_model(self, store):
        with pytest.raises(MisconfigurationError):
            resolve(Unkeyed(id=1))

    def test_store_without_hash_capability(self):
        with pytest.raises(MisconfigurationError, match="is not a hash store"):
            resolve(NotAStore(id=1))

    def test_attributes_and_storage_are_distinct(self, store):
        record = Attempt(id=1, name="x")
        assert record.attributes == {"id": 1, "name": "x"}
        assert isinstance(record.storage, StorageHandle)


class TestExpirationManager:
    """Tests for creation marker, TTL and existence."""

    @pytest.fixture
    def handle(self, store):
        return StorageHandle(store, "h:1")

    def test_touch_writes_marker(self, handle, clock):
        with patch("redmodel.storage.expiration.time.time", return_value=1700000000.7):
            ExpirationManager().touch(handle)
        assert handle.to_dict() == {CREATED_AT_FIELD: "1700000000"}
        assert handle.ttl() == -1

    def test_touch_applies_ttl(self, handle):
        ExpirationManager(ttl=2).touch(handle)
        assert handle.ttl() == 2

    @pytest.mark.parametrize("ttl", [None, 0, -1])
    def test_non_positive_ttl_never_expires(self, handle, ttl):
        manager = ExpirationManager(ttl=ttl)
        handle.set("a", "1")
        manager.apply_ttl(handle)
        assert manager.ttl is None
        assert handle.ttl() == -1

    def test_exists(self, handle, clock):
        manager = ExpirationManager(ttl=2)
        assert not manager.exists(handle)
        manager.touch(handle)
        assert manager.exists(handle)
        clock.advance(2.1)
        assert not manager.exists(handle)
