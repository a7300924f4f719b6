"""Cooperative cancellation and bounded hardware polling."""

from __future__ import annotations

import time
from typing import Callable, TypeVar

from plhwtools.exceptions import AbortedError, TimeoutError

T = TypeVar("T")


class AbortToken:
    """Process-wide abort request, set from a signal handler.

    Checked at defined checkpoints only (per EEPROM chunk, per poll
    iteration); it never interrupts a bus transaction in flight.
    """

    def __init__(self) -> None:
        self._requested = False

    @property
    def requested(self) -> bool:
        return self._requested

    def request(self) -> None:
        self._requested = True

    def clear(self) -> None:
        self._requested = False

    def check(self, what: str) -> None:
        """Raise AbortedError if an abort has been requested."""
        if self._requested:
            raise AbortedError(f"{what} aborted by user")


def poll_until(
    read: Callable[[], T],
    done: Callable[[T], bool],
    what: str,
    timeout_s: float,
    poll_s: float = 0.01,
    abort: AbortToken | None = None,
) -> T:
    """Call *read* until *done* accepts its result.

    The first read happens immediately.  Bus errors raised by *read*
    propagate unchanged.

    Returns:
        The accepted value.

    Raises:
        TimeoutError: If *timeout_s* elapses first.
        AbortedError: If *abort* is requested between polls.
    """
    deadline = time.monotonic() + timeout_s
    while True:
        if abort is not None:
            abort.check(what)
        value = read()
        if done(value):
            return value
        if time.monotonic() >= deadline:
            raise TimeoutError(f"{what}: not confirmed within {timeout_s:g} s")
        time.sleep(poll_s)
