"""Plastic Logic CPLD switch controller over its I2C register interface.

The CPLD exposes a 3-byte image with no register pointer: byte 0 holds
the switch bits (read/write), byte 1 the firmware version and byte 2 the
board id.  Writes only ever carry byte 0.
"""

from __future__ import annotations

from enum import IntEnum

from plhwtools.drivers.base import Device
from plhwtools.drivers.switches import SwitchEntry, SwitchTable
from plhwtools.models.devices import CpldInfo
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

CPLD_DATA_SIZE = 3


class CpldSwitch(IntEnum):
    """Bit position of each switch in byte 0."""
    HVEN = 0
    COM_SW_EN = 1
    COM_SW_CLOSE = 2
    COM_PSU = 3
    BPCOM_CLAMP = 4


CPLD_SWITCHES = SwitchTable(
    SwitchEntry("hv", CpldSwitch.HVEN),
    SwitchEntry("vcom_en", CpldSwitch.COM_SW_EN),
    SwitchEntry("vcom_close", CpldSwitch.COM_SW_CLOSE),
    SwitchEntry("vcom_psu", CpldSwitch.COM_PSU),
    SwitchEntry("bpcom_clamp", CpldSwitch.BPCOM_CLAMP),
)


class Cpld(Device):
    """CPLD switch controller."""

    NAME = "cpld"
    DEFAULT_ADDRESS = 0x70
    SWITCHES = CPLD_SWITCHES

    def dump(self) -> bytes:
        """Read the full register image."""
        return self._bus.read(self._address, CPLD_DATA_SIZE)

    def get_version(self) -> int:
        return self.dump()[1]

    def get_board_id(self) -> int:
        return self.dump()[2]

    def get_info(self) -> CpldInfo:
        data = self.dump()
        return CpldInfo(version=data[1], board_id=data[2], data=list(data))

    def get_switch(self, switch_id: int) -> bool:
        return bool(self.dump()[0] & (1 << CpldSwitch(switch_id)))

    def set_switch(self, switch_id: int, on: bool) -> None:
        bit = 1 << CpldSwitch(switch_id)
        current = self.dump()[0]
        updated = (current | bit) if on else (current & ~bit & 0xFF)
        self._bus.write(self._address, bytes([updated]))
        logger.debug(
            "cpld_switch_written",
            switch=self.SWITCHES.name_of(switch_id),
            on=on,
            data=f"0x{updated:02X}",
        )
