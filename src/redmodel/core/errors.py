"""
Exception hierarchy for redmodel.

Store connectivity failures are not wrapped: redis-py exceptions reach the
caller unmodified.
"""

from typing import Any, Iterable


class RecordError(Exception):
    """Base exception for redmodel errors."""


class NotFoundError(RecordError):
    """Record is missing, expired, or was never created."""


class StorageExpiredError(RecordError):
    """Update attempted on a record whose storage has lapsed or never existed."""


class MisconfigurationError(RecordError):
    """Model type is not wired to a usable storage binding."""


class InvalidStateError(RecordError, ValueError):
    """Governed attribute assigned a value outside its machine's legal states."""

    def __init__(self, field: str, value: Any, allowed: Iterable[str]):
        self.field = field
        self.value = value
        self.allowed = list(allowed)
        super().__init__(
            f"Invalid {field} '{value}'. Allowed: {', '.join(self.allowed)}"
        )

    def to_dict(self) -> dict:
        """Convert to error response format."""
        return {
            "error": "invalid_state",
            "field": self.field,
            "value": self.value,
            "allowed": self.allowed,
        }


class InvalidTransitionError(RecordError):
    """Event cannot fire from the machine's current state."""

    def __init__(self, event: str, current: str | None, machine: str | None = None):
        self.event = event
        self.current = current
        self.machine = machine
        super().__init__(f"Event '{event}' cannot transition from '{current}'.")
