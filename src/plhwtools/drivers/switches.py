"""Named boolean switches (rails) shared by the CPLD and PMIC drivers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

from plhwtools.exceptions import InvalidParameterError
from plhwtools.utils.logging import get_logger
from plhwtools.utils.parsing import on_off, parse_on_off

logger = get_logger(__name__)


class Switchable(Protocol):
    """A driver whose switches are addressed by a numeric identifier."""

    def get_switch(self, switch_id: int) -> bool: ...

    def set_switch(self, switch_id: int, on: bool) -> None: ...


@dataclass(frozen=True)
class SwitchEntry:
    """Human-readable name bound to a driver switch identifier."""
    name: str
    id: int


class SwitchTable:
    """Small fixed table of switches, looked up by name."""

    def __init__(self, *entries: SwitchEntry) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[SwitchEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self._entries]

    def lookup(self, name: str) -> SwitchEntry:
        for entry in self._entries:
            if entry.name == name:
                return entry
        raise InvalidParameterError(
            f"unknown switch: {name} (valid: {', '.join(self.names)})"
        )

    def name_of(self, switch_id: int) -> str:
        for entry in self._entries:
            if entry.id == switch_id:
                return entry.name
        return f"switch#{switch_id}"


def switch_on_off(
    table: SwitchTable,
    device: Switchable,
    name: str,
    state: str | None = None,
) -> bool:
    """Report or change the state of the switch called *name*.

    With no *state* the switch is read and its current state returned.
    Otherwise *state* (``on``/``off``) is written and returned.  Name
    and value are both validated before the device is touched.
    """
    entry = table.lookup(name)

    if state is None:
        current = device.get_switch(entry.id)
        logger.info("switch_state", switch=entry.name, state=on_off(current))
        return current

    on = parse_on_off(state)
    device.set_switch(entry.id, on)
    logger.info("switch_set", switch=entry.name, state=on_off(on))
    return on
