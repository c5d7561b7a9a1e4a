"""
State validation for governed attributes.

The attribute -> machine mapping is built once per model type. Checks run
at two points: when a value is assigned through create/update, and before
every persist (which also covers direct field mutation such as
``task.status = "fake"``). Empty values are always accepted, since a record
may legitimately sit before its initial state.
"""

import logging
from typing import Any, Iterable, Mapping

from redmodel.core.errors import InvalidStateError
from redmodel.core.protocols import StateMachine

logger = logging.getLogger(__name__)


def is_empty(value: Any) -> bool:
    return value is None or value == ""


def bind_machines(
    machines: Iterable[Any],
    field_names: Iterable[str],
    model_name: str = "",
) -> dict[str, StateMachine]:
    """
    Build the attribute -> machine mapping for a model type.

    A machine claims an attribute only if it satisfies the StateMachine
    protocol, declares at least one state, and names a declared field.
    Anything else is skipped with a warning.

    Args:
        machines: Candidate machines from the model options
        field_names: Declared field names of the model
        model_name: Used in log messages

    Returns:
        Mapping of governed attribute name to machine
    """
    fields = set(field_names)
    bound: dict[str, StateMachine] = {}

    for machine in machines:
        if not isinstance(machine, StateMachine):
            logger.warning(f"{model_name}: {machine!r} is not a state machine, skipped")
            continue
        if not list(machine.states):
            logger.warning(f"{model_name}: machine '{machine.name}' has no states, skipped")
            continue
        if machine.attribute not in fields:
            logger.warning(
                f"{model_name}: machine '{machine.name}' governs undeclared "
                f"attribute '{machine.attribute}', skipped"
            )
            continue
        if machine.attribute in bound:
            logger.warning(
                f"{model_name}: attribute '{machine.attribute}' already governed by "
                f"'{bound[machine.attribute].name}', machine '{machine.name}' skipped"
            )
            continue
        bound[machine.attribute] = machine

    return bound


class StateValidator:
    """Checks governed attribute values against their machines' legal states."""

    def __init__(self, machines: Mapping[str, StateMachine] | None = None):
        self._machines = dict(machines or {})

    @property
    def governed(self) -> frozenset[str]:
        return frozenset(self._machines)

    def machine_for(self, name: str) -> StateMachine | None:
        return self._machines.get(name)

    def machines(self) -> list[StateMachine]:
        return list(self._machines.values())

    def check_assignment(self, name: str, value: Any) -> Any:
        """
        Validate a value about to be assigned.

        Returns:
            The value to assign; governed values are given in string form

        Raises:
            InvalidStateError: If the attribute is governed and the value is
                not one of its legal states
        """
        machine = self._machines.get(name)
        if machine is None or is_empty(value):
            return value

        state = str(value)
        allowed = [str(s) for s in machine.states]
        if state not in allowed:
            raise InvalidStateError(name, state, allowed)
        return state

    def check_values(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Validate a batch of assignments before any of them is applied."""
        return {name: self.check_assignment(name, value) for name, value in values.items()}

    def check_record(self, record: Any) -> None:
        """
        Re-validate the current value of every governed attribute.

        Raises:
            InvalidStateError: On the first attribute holding an illegal state
        """
        for name in self._machines:
            self.check_assignment(name, getattr(record, name, None))
