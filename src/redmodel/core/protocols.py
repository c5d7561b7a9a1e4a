"""
Protocol definitions for redmodel.

These define the capabilities the record layer relies on, so that storage
backends and state machines can be swapped without touching model code.
"""

from abc import abstractmethod
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class HashStore(Protocol):
    """Protocol for hash-shaped key-value stores. Implemented by the Redis and in-memory stores."""

    @abstractmethod
    def incr(self, key: str) -> int:
        """Atomically increment an integer counter and return the new value."""
        ...

    @abstractmethod
    def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        """Set several hash fields; returns the number of new fields."""
        ...

    @abstractmethod
    def hget(self, key: str, field: str) -> str | None:
        """Get one hash field."""
        ...

    @abstractmethod
    def hgetall(self, key: str) -> dict[str, str]:
        """Get every field of a hash; empty dict when the key is absent."""
        ...

    @abstractmethod
    def hdel(self, key: str, *fields: str) -> int:
        """Delete hash fields; returns the number removed."""
        ...

    @abstractmethod
    def exists(self, key: str) -> int:
        """Number of the given keys that exist (0 or 1 for a single key)."""
        ...

    @abstractmethod
    def expire(self, key: str, seconds: int) -> bool:
        """Set a TTL on a key."""
        ...

    @abstractmethod
    def ttl(self, key: str) -> int:
        """Remaining TTL in seconds; -1 without expiry, -2 when absent."""
        ...

    @abstractmethod
    def delete(self, *keys: str) -> int:
        """Delete keys; returns the number removed."""
        ...


@runtime_checkable
class StateMachine(Protocol):
    """Protocol for state machines that govern a record attribute."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Machine name."""
        ...

    @property
    @abstractmethod
    def attribute(self) -> str:
        """Name of the attribute this machine governs."""
        ...

    @property
    @abstractmethod
    def states(self) -> Sequence[str]:
        """Legal state names, in declaration order."""
        ...

    @property
    @abstractmethod
    def events(self) -> Mapping[str, Any]:
        """Event name -> transition."""
        ...

    @property
    @abstractmethod
    def initial_state(self) -> str | None:
        """State assumed while the governed attribute is empty."""
        ...

    @abstractmethod
    def fire(self, record: Any, event: str) -> bool:
        """Apply an event's transition to the record in memory."""
        ...

    @abstractmethod
    def may_fire(self, record: Any, event: str) -> bool:
        """Whether the event can fire from the record's current state."""
        ...
