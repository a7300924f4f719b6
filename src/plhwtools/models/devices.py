"""Status models for the CPLD, ADC and ePDC."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CpldInfo(BaseModel):
    """CPLD firmware version, board id and raw register image."""

    version: int
    board_id: int
    data: list[int] = Field(default_factory=list)

    @property
    def hex_dump(self) -> str:
        return " ".join(f"{b:02X}" for b in self.data)


class AdcReading(BaseModel):
    """One converted ADC channel."""

    channel: int
    raw: int
    volts: float

    @property
    def millivolts(self) -> int:
        return int(round(self.volts * 1000))


class EpdcOption(BaseModel):
    """Current value of one ePDC hardware option."""

    name: str
    value: int
