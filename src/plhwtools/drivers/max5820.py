"""MAX5820 dual 8-bit DAC used to program the VCOM reference."""

from __future__ import annotations

from enum import IntEnum

from plhwtools.drivers.base import Device
from plhwtools.exceptions import InvalidParameterError, check_range
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

CMD_LOAD_A_UPDATE_ALL = 0x0
CMD_LOAD_B_UPDATE_ALL = 0x1
CMD_EXTENDED = 0xF0


class DacChannel(IntEnum):
    A = 0
    B = 1


class DacPower(IntEnum):
    """Power state of one channel; the OFF modes set the output load."""
    ON = 0
    OFF_FLOAT = 1
    OFF_1K = 2
    OFF_100K = 3


DAC_POWER_NAMES: dict[str, DacPower] = {
    "on": DacPower.ON,
    "off": DacPower.OFF_FLOAT,
    "off1k": DacPower.OFF_1K,
    "off100k": DacPower.OFF_100K,
}


def parse_channel(value: str) -> DacChannel:
    try:
        return DacChannel[value]
    except KeyError:
        raise InvalidParameterError("invalid channel identifier (A or B)") from None


class Max5820(Device):
    """MAX5820 DAC, channels A and B."""

    NAME = "dac"
    DEFAULT_ADDRESS = 0x38

    def output(self, channel: DacChannel, value: int) -> None:
        """Load *value* into *channel* and update both outputs."""
        channel = DacChannel(channel)
        check_range(value, 0, 0xFF, "DAC value")
        cmd = CMD_LOAD_A_UPDATE_ALL if channel == DacChannel.A else CMD_LOAD_B_UPDATE_ALL
        payload = bytes([(cmd << 4) | (value >> 4), (value & 0x0F) << 4])
        self._bus.write(self._address, payload)
        logger.debug("dac_output", channel=channel.name, value=value)

    def set_power(self, channel: DacChannel, power: DacPower) -> None:
        channel = DacChannel(channel)
        power = DacPower(power)
        payload = bytes([CMD_EXTENDED, (1 << (channel + 2)) | power])
        self._bus.write(self._address, payload)
        logger.debug("dac_power", channel=channel.name, power=power.name)
