"""I2C serial EEPROM with a seekable byte cursor."""

from __future__ import annotations

import time
from dataclasses import dataclass

from plhwtools.drivers.base import Device
from plhwtools.exceptions import InvalidParameterError, check_range
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_BLOCK_SIZE = 96
WRITE_CYCLE_S = 0.005


@dataclass(frozen=True)
class EepromModel:
    """Geometry of one EEPROM part."""
    name: str
    size: int
    page_size: int
    address_bytes: int


EEPROM_MODELS: dict[str, EepromModel] = {
    m.name: m
    for m in (
        EepromModel("24lc014", size=128, page_size=16, address_bytes=1),
        EepromModel("m24c32", size=4096, page_size=32, address_bytes=2),
        EepromModel("24aa256", size=32768, page_size=64, address_bytes=2),
    )
}

DEFAULT_MODEL = "24aa256"


def get_model(name: str) -> EepromModel:
    try:
        return EEPROM_MODELS[name]
    except KeyError:
        raise InvalidParameterError(
            f"unknown EEPROM model: {name} (valid: {', '.join(EEPROM_MODELS)})"
        ) from None


class Eeprom(Device):
    """Serial EEPROM accessed in I2C blocks, written page by page.

    Reads are split into ``block_size`` transactions.  Writes are also
    bounded by ``block_size`` and never cross a ``page_size`` boundary;
    each one is followed by the part's write cycle time.
    """

    NAME = "eeprom"
    DEFAULT_ADDRESS = 0x50

    def __init__(
        self,
        bus,
        address: int | None = None,
        model: str = DEFAULT_MODEL,
        block_size: int = DEFAULT_BLOCK_SIZE,
        page_size: int | None = None,
        write_cycle_s: float = WRITE_CYCLE_S,
    ) -> None:
        super().__init__(bus, address)
        self._model = get_model(model)
        self._block_size = DEFAULT_BLOCK_SIZE
        self._page_size = self._model.page_size
        self._write_cycle_s = write_cycle_s
        self._offset = 0
        self.block_size = block_size
        if page_size is not None:
            self.page_size = page_size

    @property
    def model(self) -> EepromModel:
        return self._model

    @property
    def size(self) -> int:
        return self._model.size

    @property
    def block_size(self) -> int:
        return self._block_size

    @block_size.setter
    def block_size(self, value: int) -> None:
        if value <= 0:
            raise InvalidParameterError(f"invalid I2C block size {value}")
        self._block_size = value

    @property
    def page_size(self) -> int:
        return self._page_size

    @page_size.setter
    def page_size(self, value: int) -> None:
        if value <= 0:
            raise InvalidParameterError(f"invalid page size {value}")
        if value > self._model.page_size:
            logger.warning(
                "eeprom_page_size_above_model",
                page_size=value,
                model=self._model.name,
                model_page_size=self._model.page_size,
            )
        self._page_size = value

    def tell(self) -> int:
        return self._offset

    def seek(self, offset: int) -> None:
        self._offset = check_range(offset, 0, self.size, "EEPROM offset")

    def _check_span(self, count: int) -> None:
        if self._offset + count > self.size:
            raise InvalidParameterError(
                f"EEPROM access beyond end: offset {self._offset} + {count} bytes "
                f"> size {self.size}"
            )

    def _offset_bytes(self, offset: int) -> bytes:
        return offset.to_bytes(self._model.address_bytes, "big")

    def read(self, count: int) -> bytes:
        """Read *count* bytes at the cursor and advance it."""
        self._check_span(count)
        out = bytearray()
        while len(out) < count:
            n = min(self._block_size, count - len(out))
            out += self._bus.write_read(self._address, self._offset_bytes(self._offset), n)
            self._offset += n
        return bytes(out)

    def write(self, data: bytes) -> None:
        """Write *data* at the cursor, page by page, and advance it."""
        self._check_span(len(data))
        pos = 0
        while pos < len(data):
            page_left = self._page_size - (self._offset % self._page_size)
            n = min(self._block_size, page_left, len(data) - pos)
            self._bus.write(
                self._address, self._offset_bytes(self._offset) + bytes(data[pos:pos + n])
            )
            if self._write_cycle_s:
                time.sleep(self._write_cycle_s)
            self._offset += n
            pos += n
