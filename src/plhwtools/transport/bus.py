"""Bus abstraction layer for addressed I2C register access.

Provides the Bus ABC and the concrete I2cBus bound to one Linux i2c-dev
path.  Drivers take a Bus instance rather than a raw smbus2 handle,
enabling simulated buses for testing.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from plhwtools.exceptions import BusError
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_I2C_BUS = "/dev/i2c-1"


class Bus(ABC):
    """Abstract bus interface for byte-level transactions.

    Implementations must not retry: a failed transaction raises
    BusError straight away.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Return True once the underlying handle exists."""

    @abstractmethod
    def open(self) -> None:
        """Acquire the underlying handle (idempotent)."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying handle (idempotent)."""

    @abstractmethod
    def write(self, address: int, data: bytes) -> None:
        """Write *data* to the device at *address*."""

    @abstractmethod
    def read(self, address: int, count: int) -> bytes:
        """Read *count* bytes from the device at *address*."""

    @abstractmethod
    def write_read(self, address: int, data: bytes, count: int) -> bytes:
        """Write *data* then read *count* bytes in one combined transaction."""

    def read_register(self, address: int, register: int, count: int = 1) -> bytes:
        """Read *count* bytes starting at an 8-bit *register*."""
        return self.write_read(address, bytes([register & 0xFF]), count)

    def write_register(
        self, address: int, register: int, data: bytes | Iterable[int]
    ) -> None:
        """Write *data* bytes starting at an 8-bit *register*."""
        self.write(address, bytes([register & 0xFF]) + bytes(data))

    def read_byte(self, address: int, register: int) -> int:
        return self.read_register(address, register, 1)[0]

    def write_byte(self, address: int, register: int, value: int) -> None:
        self.write_register(address, register, [value & 0xFF])

    def __enter__(self) -> Bus:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class I2cBus(Bus):
    """I2C bus on a Linux i2c-dev node, driven through smbus2.

    The device node is opened on the first transaction, not at
    construction, so creating a driver never touches the hardware.
    """

    def __init__(self, path: str = DEFAULT_I2C_BUS) -> None:
        super().__init__(path)
        self._smbus = None

    @property
    def is_open(self) -> bool:
        return self._smbus is not None

    def open(self) -> None:
        if self.is_open:
            return

        from smbus2 import SMBus

        try:
            self._smbus = SMBus(self._path)
        except FileNotFoundError as exc:
            raise BusError(f"I2C bus {self._path} not found") from exc
        except PermissionError as exc:
            raise BusError(f"permission denied opening I2C bus {self._path}") from exc
        except OSError as exc:
            raise BusError(f"failed to open I2C bus {self._path}: {exc}") from exc
        logger.debug("i2c_bus_opened", path=self._path)

    def close(self) -> None:
        if self._smbus is not None:
            try:
                self._smbus.close()
            finally:
                self._smbus = None
            logger.debug("i2c_bus_closed", path=self._path)

    def _transfer(self, op: str, address: int, *msgs) -> None:
        self.open()
        try:
            self._smbus.i2c_rdwr(*msgs)
        except OSError as exc:
            raise BusError(
                f"I2C {op} failed (addr=0x{address:02X}, bus={self._path}): {exc}",
                address=address,
            ) from exc

    def write(self, address: int, data: bytes) -> None:
        from smbus2 import i2c_msg

        self._transfer("write", address, i2c_msg.write(address, bytes(data)))

    def read(self, address: int, count: int) -> bytes:
        from smbus2 import i2c_msg

        msg = i2c_msg.read(address, count)
        self._transfer("read", address, msg)
        return bytes(msg)

    def write_read(self, address: int, data: bytes, count: int) -> bytes:
        from smbus2 import i2c_msg

        out = i2c_msg.write(address, bytes(data))
        msg = i2c_msg.read(address, count)
        self._transfer("write_read", address, out, msg)
        return bytes(msg)
