"""Common base for register-level chip drivers."""

from __future__ import annotations

from plhwtools.exceptions import check_range
from plhwtools.transport.bus import Bus
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)


class Device:
    """One chip at one address on one bus.

    Subclasses set NAME and DEFAULT_ADDRESS.  The bus handle is opened
    by the first register access; close() releases it.
    """

    NAME = "device"
    DEFAULT_ADDRESS = 0x00

    def __init__(self, bus: Bus, address: int | None = None) -> None:
        self._bus = bus
        self._address = self.DEFAULT_ADDRESS if address is None else address
        check_range(self._address, 0x00, 0x7F, f"{self.NAME} I2C address")

    @property
    def bus(self) -> Bus:
        return self._bus

    @property
    def address(self) -> int:
        return self._address

    def _read(self, register: int, count: int = 1) -> bytes:
        return self._bus.read_register(self._address, register, count)

    def _read_byte(self, register: int) -> int:
        return self._bus.read_byte(self._address, register)

    def _write_byte(self, register: int, value: int) -> None:
        self._bus.write_byte(self._address, register, value)

    def _update_bits(self, register: int, mask: int, on: bool) -> None:
        """Read-modify-write the bits of *mask* in *register*."""
        value = self._read_byte(register)
        value = (value | mask) if on else (value & ~mask)
        self._write_byte(register, value & 0xFF)

    def close(self) -> None:
        """Release the bus handle."""
        self._bus.close()
        logger.debug("device_closed", device=self.NAME, address=f"0x{self._address:02X}")

    def __enter__(self) -> Device:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
