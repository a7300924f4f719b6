"""Exception hierarchy for bus, device and sequencing failures."""

from __future__ import annotations

from enum import StrEnum


class ErrorKind(StrEnum):
    """Class of failure carried by every PlhwError."""
    VALIDATION = "validation"
    BUS = "bus"
    TIMEOUT = "timeout"
    ABORTED = "aborted"
    CONFIG = "config"


class PlhwError(Exception):
    """Base exception for all plhwtools errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, address: int | None = None) -> None:
        self.address = address
        super().__init__(message)


class InvalidParameterError(PlhwError):
    """An argument or option failed validation before any device I/O."""

    kind = ErrorKind.VALIDATION


class BusError(PlhwError):
    """A register transaction failed or returned an unusable value."""

    kind = ErrorKind.BUS


class TimeoutError(PlhwError):
    """A hardware state transition was not confirmed in time."""

    kind = ErrorKind.TIMEOUT


class AbortedError(PlhwError):
    """A blocking wait was interrupted by the user."""

    kind = ErrorKind.ABORTED


class ConfigError(PlhwError):
    """The configuration store could not be loaded or is malformed."""

    kind = ErrorKind.CONFIG


def check_range(value: int, low: int, high: int, label: str) -> int:
    """Validate that *value* lies in [low, high].

    Raises:
        InvalidParameterError: If the value is out of range.
    """
    if value < low or value > high:
        raise InvalidParameterError(
            f"invalid {label} {value} (valid: {low} - {high})"
        )
    return value
