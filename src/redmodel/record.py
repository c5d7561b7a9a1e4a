"""
Record base class.

Declare a model by subclassing Record with pydantic fields and options:

    ```python
    class Task(Record):
        __options__ = RecordOptions(
            key="collection::attempt:{id}",
            expires_in=timedelta(seconds=2),
            state_machines=[status_machine],
        )

        name: str | None = None
        status: str | None = None

    task = Task.create(name="My name")
    Task.find(task.id).name        # "My name"
    task.update(name="New name")   # "New name"
    ```

Typed fields and storage stay under separate names: ``attributes`` is the
plain field mapping, ``storage`` is the Redis hash handle.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from redmodel import lifecycle
from redmodel.core.config import RecordOptions
from redmodel.core.errors import InvalidTransitionError
from redmodel.descriptor import ModelDescriptor
from redmodel.storage.handle import StorageHandle, resolve

logger = logging.getLogger(__name__)


class Record(BaseModel):
    """Typed in-memory model persisted to a Redis hash."""

    model_config = ConfigDict(
        validate_assignment=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    __options__: ClassVar[RecordOptions] = RecordOptions()
    __descriptor__: ClassVar[ModelDescriptor]

    id: int | None = None

    _storage: StorageHandle | None = PrivateAttr(default=None)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        required = [name for name, info in cls.model_fields.items() if info.is_required()]
        if required:
            raise TypeError(
                f"{cls.__name__} fields must have defaults so records can be "
                f"built empty; required: {required}"
            )
        cls.__descriptor__ = ModelDescriptor.build(cls)

    # -------------------------------------------------------------------------
    # Class-level API
    # -------------------------------------------------------------------------

    @classmethod
    def create(cls, **attrs: Any) -> Record:
        """Create and persist a record; raises InvalidStateError on illegal states."""
        return lifecycle.create(cls, attrs)

    @classmethod
    def find(cls, record_id: Any) -> Record:
        """Load a record by id; raises NotFoundError when missing or expired."""
        return lifecycle.find(cls, record_id)

    @classmethod
    def expires_in(cls, value: int | float | timedelta | None) -> None:
        """
        Set the TTL for this model's storage keys.

        The model's options are immutable: this swaps in a copy carrying the
        new TTL. Records created afterwards, and persists of existing records,
        use the new value.
        """
        cls.__descriptor__ = cls.__descriptor__.with_ttl(value)

    @classmethod
    def options(cls) -> RecordOptions:
        return cls.__descriptor__.options

    # -------------------------------------------------------------------------
    # Instance API
    # -------------------------------------------------------------------------

    @property
    def attributes(self) -> dict[str, Any]:
        """Declared field name -> current value."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    @property
    def storage(self) -> StorageHandle:
        """Hash handle backing this record, resolved on first access."""
        return resolve(self)

    def update(self, **attrs: Any) -> Any:
        """
        Assign and persist attributes.

        Returns the new value for a single attribute, the record otherwise.
        Raises StorageExpiredError once the record's storage has lapsed.
        """
        return lifecycle.update(self, attrs)

    def save(self) -> bool:
        return lifecycle.save(self)

    def reload(self) -> Record:
        return lifecycle.reload(self)

    def exists(self) -> bool:
        """Whether the record's storage key is present."""
        return type(self).__descriptor__.expiration.exists(self.storage)

    def ttl(self) -> int:
        """Remaining TTL of the storage key (-1: no expiry, -2: absent)."""
        return self.storage.ttl()

    def fire(self, event: str, machine: str | None = None) -> bool:
        """
        Fire a state machine event in memory.

        Args:
            event: Event name
            machine: Machine name or governed attribute; required only when
                more than one machine declares the event

        Raises:
            InvalidTransitionError: If no machine can fire the event from its
                current state
        """
        validator = type(self).__descriptor__.validator
        candidates = [
            m for m in validator.machines()
            if (machine is None and event in m.events)
            or machine in (m.name, m.attribute)
        ]
        if not candidates:
            raise InvalidTransitionError(event, None, machine=machine)
        if len(candidates) > 1:
            allowed = [m for m in candidates if m.may_fire(self, event)]
            candidates = allowed or candidates
        return candidates[0].fire(self, event)

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.attributes.items())
        return f"{type(self).__name__}({fields})"


Record.__descriptor__ = ModelDescriptor.build(Record)
