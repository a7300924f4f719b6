"""EEPROM transfer options and result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EepromTransferOptions(BaseModel):
    """Sub-options of one EEPROM command, parsed from ``-o``.

    ``None`` means "use the device default" (block size, page size,
    data size).
    """

    model_config = ConfigDict(frozen=True)

    i2c_block_size: int | None = Field(default=None, gt=0)
    page_size: int | None = Field(default=None, gt=0)
    zero_padding: bool = False
    data_size: int | None = Field(default=None, gt=0)
    skip: int = Field(default=0, ge=0)
    address: int | None = Field(default=None, ge=0, le=0x7F)


class SelfTestResult(BaseModel):
    """Outcome of the write / read back / compare self-test."""

    data_size: int
    passed: bool
    mismatch_offset: int | None = None
    dump_offset: int | None = None
    written: bytes = b""
    read: bytes = b""


class TransferResult(BaseModel):
    """Outcome of an EEPROM export or import."""

    data_size: int
    skip: int = 0
    transferred: int = 0
    padded: int = 0
    aborted: bool = False

    @property
    def complete(self) -> bool:
        return self.transferred + self.padded == self.data_size
