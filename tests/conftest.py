"""Pytest configuration and shared fixtures.

FakeBus stands in for the I2C bus; each address is served by a small
chip model that keeps just enough state for the drivers under test.
"""

from __future__ import annotations

import pytest
import structlog

from plhwtools.exceptions import BusError
from plhwtools.transport.bus import Bus


class RegisterChip:
    """Chip with an 8-bit register pointer and auto-incrementing access."""

    def __init__(self, regs: dict[int, int] | None = None, size: int = 256) -> None:
        self.regs = bytearray(size)
        for reg, value in (regs or {}).items():
            self.regs[reg] = value
        self.pointer = 0

    def on_write(self, register: int, value: int) -> None:
        self.regs[register] = value

    def write(self, data: bytes) -> None:
        self.pointer = data[0]
        for value in data[1:]:
            self.on_write(self.pointer, value)
            self.pointer += 1

    def read(self, count: int) -> bytes:
        data = bytes(self.regs[self.pointer:self.pointer + count])
        self.pointer += count
        return data

    def write_read(self, data: bytes, count: int) -> bytes:
        self.write(data)
        return self.read(count)


class CpldChip:
    """3-byte image, no register pointer; writes only update byte 0."""

    def __init__(self, switches: int = 0, version: int = 5, board_id: int = 2) -> None:
        self.data = bytearray([switches, version, board_id])

    def write(self, data: bytes) -> None:
        self.data[0] = data[0]

    def read(self, count: int) -> bytes:
        return bytes(self.data[:count])

    def write_read(self, data: bytes, count: int) -> bytes:
        self.write(data)
        return self.read(count)


class Tps65185Chip(RegisterChip):
    """Power good follows the ACTIVE/STANDBY requests; conversions end at once."""

    def __init__(self, regs: dict[int, int] | None = None, respond: bool = True) -> None:
        super().__init__({0x10: 0x65, 0x00: 0x19, **(regs or {})})
        self.respond = respond

    def on_write(self, register: int, value: int) -> None:
        if register == 0x01 and self.respond:
            if value & 0x80:
                self.regs[0x0F] = 0x5A
            elif value & 0x40:
                self.regs[0x0F] = 0x00
            value &= 0x3F
        if register == 0x0D and value & 0x80:
            value = (value & 0x7F) | 0x20
        self.regs[register] = value


class EepromChip:
    """Serial EEPROM with page-wrapping writes, like the real parts."""

    def __init__(self, size: int = 32768, page_size: int = 64, address_bytes: int = 2) -> None:
        self.mem = bytearray(b"\xff" * size)
        self.page_size = page_size
        self.address_bytes = address_bytes
        self.pointer = 0
        self.writes: list[tuple[int, int]] = []
        self.corrupt: dict[int, int] = {}

    def _set_pointer(self, data: bytes) -> bytes:
        self.pointer = int.from_bytes(data[:self.address_bytes], "big")
        return data[self.address_bytes:]

    def write(self, data: bytes) -> None:
        payload = self._set_pointer(data)
        if not payload:
            return
        self.writes.append((self.pointer, len(payload)))
        page_start = self.pointer - self.pointer % self.page_size
        for i, value in enumerate(payload):
            offset = page_start + (self.pointer - page_start + i) % self.page_size
            self.mem[offset] = self.corrupt.get(offset, value)

    def read(self, count: int) -> bytes:
        data = bytes(self.mem[self.pointer:self.pointer + count])
        self.pointer += count
        return data

    def write_read(self, data: bytes, count: int) -> bytes:
        self._set_pointer(data)
        return self.read(count)


class AdcChip:
    """MAX11607 scan results, encoded with the leading-ones padding."""

    def __init__(self, results: list[int] | None = None) -> None:
        self.results = results or [0, 0, 0, 0]
        self.commands: list[int] = []
        self.pad = 0xFC

    def write(self, data: bytes) -> None:
        self.commands.extend(data)

    def read(self, count: int) -> bytes:
        out = bytearray()
        for value in self.results:
            out += bytes([self.pad | (value >> 8), value & 0xFF])
        return bytes(out[:count])

    def write_read(self, data: bytes, count: int) -> bytes:
        self.write(data)
        return self.read(count)


class ButtonChip(RegisterChip):
    """Input port that replays a list of pressed-button masks."""

    def __init__(self, pressed: list[int] | None = None) -> None:
        super().__init__({0x00: 0xFF, 0x03: 0x00})
        self.pressed = list(pressed or [0])

    def read(self, count: int) -> bytes:
        if self.pointer == 0x00:
            mask = self.pressed.pop(0) if len(self.pressed) > 1 else self.pressed[0]
            self.regs[0x00] = ~mask & 0xFF
        return super().read(count)


class WriteLog:
    """Chip that accepts anything and remembers raw writes."""

    def __init__(self) -> None:
        self.writes: list[bytes] = []

    def write(self, data: bytes) -> None:
        self.writes.append(bytes(data))

    def read(self, count: int) -> bytes:
        return bytes(count)

    def write_read(self, data: bytes, count: int) -> bytes:
        self.write(data)
        return self.read(count)


class FakeBus(Bus):
    """In-memory bus dispatching transactions to chip models by address."""

    def __init__(self, path: str = "/dev/i2c-fake") -> None:
        super().__init__(path)
        self.chips: dict[int, object] = {}
        self.failing: set[int] = set()
        self.log: list[tuple[str, int, bytes]] = []
        self.open_count = 0
        self.close_count = 0
        self._open = False

    def attach(self, address: int, chip):
        self.chips[address] = chip
        return chip

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> None:
        if not self._open:
            self._open = True
            self.open_count += 1

    def close(self) -> None:
        self.close_count += 1
        self._open = False

    def _chip(self, op: str, address: int):
        self.open()
        if address in self.failing or address not in self.chips:
            raise BusError(f"I2C {op} failed (addr=0x{address:02X})", address=address)
        return self.chips[address]

    def write(self, address: int, data: bytes) -> None:
        chip = self._chip("write", address)
        self.log.append(("write", address, bytes(data)))
        chip.write(bytes(data))

    def read(self, address: int, count: int) -> bytes:
        chip = self._chip("read", address)
        self.log.append(("read", address, b""))
        return chip.read(count)

    def write_read(self, address: int, data: bytes, count: int) -> bytes:
        chip = self._chip("write_read", address)
        self.log.append(("write_read", address, bytes(data)))
        return chip.write_read(bytes(data), count)

    def writes_to(self, address: int) -> list[bytes]:
        return [data for op, addr, data in self.log if op == "write" and addr == address]


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture
def board(fake_bus):
    """A bus populated with every chip at its default address."""
    fake_bus.attach(0x70, CpldChip())
    fake_bus.attach(0x48, RegisterChip({0x06: 0x01, 0x07: 0x4D, 0x0A: 0x80}))
    fake_bus.attach(0x68, Tps65185Chip())
    fake_bus.attach(0x38, WriteLog())
    fake_bus.attach(0x34, AdcChip([100, 512, 1023, 0]))
    fake_bus.attach(0x50, EepromChip(size=128, page_size=16, address_bytes=1))
    fake_bus.attach(0x20, ButtonChip())
    fake_bus.attach(0x49, RegisterChip({0x10: 0x01, 0x11: 0xF4, 0x12: 0x01}))
    return fake_bus


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logging() so later tests never log to a closed stream."""
    yield
    structlog.reset_defaults()
