"""
redmodel - typed records persisted to Redis hashes.

Gives pydantic model objects persistence semantics backed by a Redis hash
store: per-type id allocation, partial updates, TTL-based expiry and
validation of state-machine-governed attributes.

Quick Start:
    from redmodel import Machine, Record, RecordOptions

    class Task(Record):
        __options__ = RecordOptions(key="tasks:{id}", expires_in=3600)

        name: str | None = None

    task = Task.create(name="My name")
    Task.find(task.id).name
"""

__version__ = "0.1.0"

from redmodel.core.config import RecordOptions, Settings, configure_logging, get_settings
from redmodel.core.errors import (
    InvalidStateError,
    InvalidTransitionError,
    MisconfigurationError,
    NotFoundError,
    RecordError,
    StorageExpiredError,
)
from redmodel.core.protocols import HashStore, StateMachine
from redmodel.core.state_machine import Machine, Transition
from redmodel.record import Record
from redmodel.storage import (
    InMemoryHashStore,
    RedisHashStore,
    StorageHandle,
    get_store,
    reset_store,
    set_store,
)

__all__ = [
    # Records
    "Record",
    "RecordOptions",
    # State machines
    "Machine",
    "Transition",
    "StateMachine",
    # Storage
    "HashStore",
    "InMemoryHashStore",
    "RedisHashStore",
    "StorageHandle",
    "get_store",
    "set_store",
    "reset_store",
    # Config
    "Settings",
    "get_settings",
    "configure_logging",
    # Errors
    "RecordError",
    "NotFoundError",
    "StorageExpiredError",
    "InvalidStateError",
    "InvalidTransitionError",
    "MisconfigurationError",
]
