"""
Finite-state machines for governed record attributes.

A Machine names the attribute it governs, its legal states, an initial
state, and events. Machines never persist anything themselves: firing an
event changes the record in memory and the next save/update writes it.

Usage:
    ```python
    status = Machine(
        "status",
        states=["created", "processed", "failed"],
        events={
            "process": Transition(sources=("created",), target="processed"),
            "fail": Transition(sources=("created",), target="failed"),
        },
    )
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from redmodel.core.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Event transition: allowed source states and the target state.

    An empty ``sources`` tuple means the event may fire from any state.
    """
    sources: tuple[str, ...]
    target: str

    def allows(self, current: str | None) -> bool:
        return not self.sources or current in self.sources


@dataclass(frozen=True, eq=False)
class Machine:
    """
    State machine governing one record attribute.

    Attributes:
        name: Machine name
        states: Legal states in declaration order
        attribute: Governed attribute (defaults to ``name``)
        initial: Initial state (defaults to the first state)
        events: Event name -> Transition
    """
    name: str
    states: tuple[str, ...] = ()
    attribute: str = ""
    initial: str | None = None
    events: Mapping[str, Transition] = field(default_factory=dict)

    def __init__(
        self,
        name: str,
        states: Iterable[str] = (),
        attribute: str | None = None,
        initial: str | None = None,
        events: Mapping[str, Transition | tuple[Iterable[str], str]] | None = None,
    ):
        states = tuple(str(s) for s in states)
        if initial is not None and initial not in states:
            raise ValueError(f"Initial state '{initial}' is not one of {list(states)}")

        transitions = {}
        for event, transition in (events or {}).items():
            if not isinstance(transition, Transition):
                sources, target = transition
                if isinstance(sources, str):
                    sources = (sources,)
                transition = Transition(sources=tuple(sources), target=target)
            unknown = [s for s in (*transition.sources, transition.target) if s not in states]
            if unknown:
                raise ValueError(f"Event '{event}' of machine '{name}' uses unknown states {unknown}")
            transitions[event] = transition

        object.__setattr__(self, "name", name)
        object.__setattr__(self, "states", states)
        object.__setattr__(self, "attribute", attribute or name)
        object.__setattr__(self, "initial", initial)
        object.__setattr__(self, "events", transitions)

    @property
    def initial_state(self) -> str | None:
        if self.initial is not None:
            return self.initial
        return self.states[0] if self.states else None

    def current_state(self, record: Any) -> str | None:
        """Governed attribute value, or the initial state while it is empty."""
        value = getattr(record, self.attribute, None)
        if value is None or value == "":
            return self.initial_state
        return str(value)

    def may_fire(self, record: Any, event: str) -> bool:
        transition = self.events.get(event)
        return transition is not None and transition.allows(self.current_state(record))

    def fire(self, record: Any, event: str) -> bool:
        """
        Apply an event to the record in memory.

        Raises:
            InvalidTransitionError: If the event is unknown or not allowed
                from the current state
        """
        current = self.current_state(record)
        transition = self.events.get(event)
        if transition is None or not transition.allows(current):
            raise InvalidTransitionError(event, current, machine=self.name)

        setattr(record, self.attribute, transition.target)
        logger.debug(f"{self.name}: {event} {current} -> {transition.target}")
        return True
