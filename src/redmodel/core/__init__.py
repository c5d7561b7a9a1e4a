"""Core types, configuration, validation and protocols for redmodel."""

from redmodel.core.config import RecordOptions, Settings, get_settings, reset_settings
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
from redmodel.core.validation import StateValidator, bind_machines

__all__ = [
    "RecordOptions",
    "Settings",
    "get_settings",
    "reset_settings",
    "RecordError",
    "NotFoundError",
    "StorageExpiredError",
    "InvalidStateError",
    "InvalidTransitionError",
    "MisconfigurationError",
    "HashStore",
    "StateMachine",
    "Machine",
    "Transition",
    "StateValidator",
    "bind_machines",
]
