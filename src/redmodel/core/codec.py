"""
Conversion between typed record fields and string hash fields.

Redis hashes only hold strings. Writes stringify each non-empty field;
reads go back through pydantic's validated assignment, so "42" becomes 42
on an int field and "true" becomes True on a bool field.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

from redmodel.core.validation import is_empty

if TYPE_CHECKING:
    from redmodel.record import Record

logger = logging.getLogger(__name__)

IDENTITY_FIELD = "id"


def to_storage(value: Any) -> str:
    """Convert one typed value to its stored string form."""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def persistable_fields(record: Record) -> list[str]:
    """Declared field names that are written to storage (everything but the id)."""
    return [name for name in type(record).model_fields if name != IDENTITY_FIELD]


def persistable_values(record: Record) -> dict[str, str]:
    """
    Fields to write for a record.

    Returns:
        Field name -> string value, for every non-empty non-id field
    """
    values = {}
    for name in persistable_fields(record):
        value = getattr(record, name)
        if not is_empty(value):
            values[name] = to_storage(value)
    return values


def cleared_fields(record: Record) -> list[str]:
    """Non-id fields that are empty in memory and must be removed from storage."""
    return [name for name in persistable_fields(record) if is_empty(getattr(record, name))]


def hydrate(record: Record, raw: Mapping[str, str]) -> Record:
    """
    Populate a record from raw hash fields.

    Keys that are not declared fields (including metadata such as
    ``__created_at``) are dropped. The id is never overwritten.
    """
    declared = set(persistable_fields(record))
    for name, value in raw.items():
        if name not in declared:
            continue
        setattr(record, name, value)
    return record
