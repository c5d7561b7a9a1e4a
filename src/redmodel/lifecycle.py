"""
Record lifecycle: create, find, update, save.

Each operation follows a fixed protocol over the identity, storage,
codec, validation and expiration layers.

Consistency:
    Only id allocation is atomic across callers. Reads, field writes, TTL
    refreshes and existence checks are independent round-trips with no
    multi-key transaction. Two callers updating the same record interleave
    field by field: the last write wins per field, not per record. This is
    the accepted policy; callers needing more must coordinate externally.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, TypeVar

from redmodel.core import codec
from redmodel.core.errors import NotFoundError, StorageExpiredError
from redmodel.core.identity import next_id
from redmodel.storage.handle import resolve

if TYPE_CHECKING:
    from redmodel.record import Record

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="Record")


def _known_attributes(model: type, attrs: Mapping[str, Any]) -> dict[str, Any]:
    """Drop names that are not declared fields of the model."""
    declared = model.__descriptor__.field_names
    known = {}
    for name, value in attrs.items():
        if name in declared:
            known[name] = value
        else:
            logger.debug(f"{model.__name__}: ignoring unknown attribute '{name}'")
    return known


def _coerce(
    model: type,
    values: Mapping[str, Any],
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Coerce values to the model's declared types on a scratch instance.

    Raises:
        pydantic.ValidationError: If any value does not fit its field
    """
    candidate = model.model_validate({**(base or {}), **values})
    return {name: getattr(candidate, name) for name in values}


def _assign(record: Record, values: Mapping[str, Any]) -> None:
    for name, value in values.items():
        setattr(record, name, value)


def persist(record: Record) -> None:
    """
    Write the record's current state to storage.

    Governed attributes are re-validated first. Non-empty fields are
    written, empty ones are removed from the hash, then the TTL is refreshed.

    Raises:
        InvalidStateError: If a governed attribute holds an illegal state
    """
    descriptor = type(record).__descriptor__
    descriptor.validator.check_record(record)

    handle = resolve(record)
    handle.update(codec.persistable_values(record))
    handle.delete_fields(*codec.cleared_fields(record))
    descriptor.expiration.apply_ttl(handle)
    logger.debug(f"Persisted {descriptor.model_name}#{record.id} to {handle.key}")


def create(model: type[R], attrs: Mapping[str, Any]) -> R:
    """
    Allocate an id, initialize storage and persist a new record.

    Every value is validated before anything is written, so an invalid
    create leaves no hash behind and consumes no id.

    Raises:
        InvalidStateError: If a governed attribute value is illegal
        pydantic.ValidationError: If a value does not fit its field type
    """
    descriptor = model.__descriptor__
    values = descriptor.validator.check_values(_known_attributes(model, attrs))
    values.pop(codec.IDENTITY_FIELD, None)
    values = _coerce(model, values)

    record = model(id=next_id(descriptor.store, descriptor.namespace))
    handle = resolve(record)
    descriptor.expiration.touch(handle)

    _assign(record, values)
    persist(record)
    logger.debug(f"Created {descriptor.model_name}#{record.id}")
    return record


def find(model: type[R], record_id: Any) -> R:
    """
    Load a record by id.

    Raises:
        NotFoundError: If the record was never created or has expired
    """
    record = model(id=int(record_id))
    data = resolve(record).to_dict()
    if not data:
        raise NotFoundError(f"Cannot find {model.__name__}#{record_id}")
    return codec.hydrate(record, data)


def reload(record: R) -> R:
    """
    Re-read a record's fields from storage in place.

    Raises:
        NotFoundError: If the record's storage is gone
    """
    data = resolve(record).to_dict()
    if not data:
        raise NotFoundError(f"Cannot find {type(record).__name__}#{record.id}")
    return codec.hydrate(record, data)


def update(record: Record, attrs: Mapping[str, Any]) -> Any:
    """
    Assign and persist attributes on a live record.

    The id cannot be changed and is silently dropped. All values are
    validated before any is assigned, so a failed update leaves the record
    untouched in memory.

    Returns:
        The new value when exactly one declared attribute was given, else
        the record

    Raises:
        StorageExpiredError: If the record's storage has expired or never existed
        InvalidStateError: If a governed attribute value is illegal
        pydantic.ValidationError: If a value does not fit its field type
    """
    model = type(record)
    descriptor = model.__descriptor__
    if not descriptor.expiration.exists(resolve(record)):
        raise StorageExpiredError(
            f"Cannot update {model.__name__}#{record.id}: storage expired or not found"
        )

    attrs = {name: value for name, value in attrs.items() if name != codec.IDENTITY_FIELD}
    values = descriptor.validator.check_values(_known_attributes(model, attrs))
    values = _coerce(model, values, base=record.attributes)

    _assign(record, values)
    persist(record)

    if len(values) == 1:
        return getattr(record, next(iter(values)))
    return record


def save(record: Record) -> bool:
    """Persist the record unconditionally."""
    persist(record)
    return True
