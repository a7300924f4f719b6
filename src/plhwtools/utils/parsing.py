"""Small argument parsers shared by the drivers and the CLI."""

from __future__ import annotations

from plhwtools.exceptions import InvalidParameterError

_ON_OFF: dict[str, bool] = {"on": True, "off": False}


def parse_on_off(value: str) -> bool:
    """Parse the literal strings ``on`` / ``off``.

    Raises:
        InvalidParameterError: For any other value.
    """
    try:
        return _ON_OFF[value]
    except KeyError:
        raise InvalidParameterError(
            f"invalid value: {value}, expected [on off]"
        ) from None


def on_off(state: bool) -> str:
    return "on" if state else "off"


def parse_int(value: str, label: str, base: int = 0) -> int:
    """Parse an integer, accepting 0x/0o/0b prefixes when *base* is 0."""
    try:
        return int(value.strip(), base)
    except ValueError:
        raise InvalidParameterError(f"invalid {label}: {value!r}") from None


def parse_int_list(value: str, label: str) -> list[int]:
    """Parse a comma-separated list of integers like ``1,2,3,4``."""
    parts = [p for p in (s.strip() for s in value.split(",")) if p]
    if not parts:
        raise InvalidParameterError(f"empty {label} list")
    return [parse_int(p, label) for p in parts]
