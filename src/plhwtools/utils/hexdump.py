"""Hex dump formatting for register images and EEPROM buffers."""

from __future__ import annotations

BYTES_PER_LINE = 16


def hex_bytes(data: bytes | list[int]) -> str:
    """Format bytes as space-separated upper-case hex pairs."""
    return " ".join(f"{b:02X}" for b in data)


def hex_dump_lines(data: bytes, offset: int = 0) -> list[str]:
    """Split *data* into 16-byte lines prefixed with their address.

    A blank line separates every block of 256 bytes, which keeps long
    EEPROM dumps readable.
    """
    lines: list[str] = []
    for line_no, start in enumerate(range(0, len(data), BYTES_PER_LINE)):
        if line_no and not line_no % 16:
            lines.append("")
        chunk = data[start:start + BYTES_PER_LINE]
        lines.append(f"0x{offset + start:04X}: {hex_bytes(chunk)}")
    return lines


def log_hex_dump(logger, event: str, data: bytes, offset: int = 0) -> None:
    """Emit a hex dump through *logger* at debug level, one event per line."""
    for line in hex_dump_lines(data, offset):
        if line:
            logger.debug(event, line=line)
