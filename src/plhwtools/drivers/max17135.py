"""MAX17135 HV PMIC: enables, timings, VCOM, faults and temperature."""

from __future__ import annotations

from enum import IntEnum

from plhwtools.drivers.pmic import HvPmic
from plhwtools.drivers.switches import SwitchEntry, SwitchTable
from plhwtools.exceptions import BusError, InvalidParameterError, check_range
from plhwtools.models.pmic import NB_TIMINGS, FaultCode, HvPmicState, PmicTemperature
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

# Register map
REG_EXT_TEMP = 0x00
REG_CONFIG = 0x01
REG_INT_TEMP = 0x04
REG_PROD_REV = 0x06
REG_PROD_ID = 0x07
REG_DVR = 0x08
REG_ENABLE = 0x09
REG_FAULT = 0x0A
REG_TIMING_1 = 0x10

CONFIG_TEMP_SHUTDOWN = 1 << 0
FAULT_POK = 1 << 7
FAULT_MASK = 0x7F


class Max17135En(IntEnum):
    """Bit position of each enable in REG_ENABLE."""
    EN = 0
    CEN = 1
    CEN2 = 2


MAX17135_SWITCHES = SwitchTable(
    SwitchEntry("en", Max17135En.EN),
    SwitchEntry("cen", Max17135En.CEN),
    SwitchEntry("cen2", Max17135En.CEN2),
)


def convert_temperature(raw: bytes) -> float:
    """Convert a 16-bit temperature register pair to degrees Celsius.

    The reading is a 9-bit two's complement value in bits 15:7 with
    0.5 C per LSB.
    """
    value = int.from_bytes(raw[:2], "big", signed=True)
    return (value >> 7) * 0.5


def decode_fault(value: int) -> FaultCode:
    """Map the fault register onto a FaultCode.

    When several faults are latched the lowest bit wins.
    """
    faults = value & FAULT_MASK
    if not faults:
        return FaultCode.NONE
    bit = (faults & -faults).bit_length() - 1
    return FaultCode(bit + 1)


class Max17135(HvPmic):
    """MAX17135 HV PMIC with an 8-slot timing table and 8-bit VCOM."""

    NAME = "max17135"
    DEFAULT_ADDRESS = 0x48
    SWITCHES = MAX17135_SWITCHES
    VCOM_MAX = 0xFF

    def get_prod_id(self) -> int:
        return self._read_byte(REG_PROD_ID)

    def get_prod_rev(self) -> int:
        return self._read_byte(REG_PROD_REV)

    # --- Enables ---

    def get_switch(self, switch_id: int) -> bool:
        return bool(self._read_byte(REG_ENABLE) & (1 << Max17135En(switch_id)))

    def set_switch(self, switch_id: int, on: bool) -> None:
        self._update_bits(REG_ENABLE, 1 << Max17135En(switch_id), on)

    # --- Timings ---

    def get_timings(self) -> list[int]:
        data = self._read(REG_TIMING_1, NB_TIMINGS)
        if len(data) != NB_TIMINGS:
            raise BusError(f"could only read {len(data)} timings", address=self._address)
        return list(data)

    def set_timing(self, index: int, value_ms: int) -> None:
        check_range(index, 0, NB_TIMINGS - 1, "timing number")
        check_range(value_ms, 0, 0xFF, "timing value")
        logger.info("timing_set", index=index, ms=value_ms)
        self._write_byte(REG_TIMING_1 + index, value_ms)

    def set_timings(self, values: list[int]) -> None:
        """Write the first ``len(values)`` timing slots.

        Every value is validated before the first register write.  Only
        the first 8 values are used.
        """
        if not values:
            raise InvalidParameterError("no timing values given")
        if len(values) > NB_TIMINGS:
            logger.warning("timings_truncated", used=NB_TIMINGS, given=len(values))
            values = values[:NB_TIMINGS]
        for value in values:
            check_range(value, 0, 0xFF, "timing")
        self._bus.write_register(self._address, REG_TIMING_1, bytes(values))
        logger.info("timings_set", timings=list(values))

    # --- VCOM ---

    def get_vcom(self) -> int:
        return self._read_byte(REG_DVR)

    def _write_vcom(self, value: int) -> None:
        self._write_byte(REG_DVR, value)

    # --- Status ---

    def get_fault(self) -> FaultCode:
        return decode_fault(self._read_byte(REG_FAULT))

    def is_power_ok(self) -> bool:
        return bool(self._read_byte(REG_FAULT) & FAULT_POK)

    def get_temp_sensor_enabled(self) -> bool:
        return not self._read_byte(REG_CONFIG) & CONFIG_TEMP_SHUTDOWN

    def set_temp_sensor_enabled(self, enabled: bool) -> None:
        self._update_bits(REG_CONFIG, CONFIG_TEMP_SHUTDOWN, not enabled)

    def get_temperature(self) -> PmicTemperature:
        return PmicTemperature(
            internal_celsius=convert_temperature(self._read(REG_INT_TEMP, 2)),
            external_celsius=convert_temperature(self._read(REG_EXT_TEMP, 2)),
            sensor_enabled=self.get_temp_sensor_enabled(),
        )

    def get_state(self) -> HvPmicState:
        return HvPmicState(
            prod_id=self.get_prod_id(),
            prod_rev=self.get_prod_rev(),
            switches={e.name: self.get_switch(e.id) for e in self.SWITCHES},
            timings=self.get_timings(),
            vcom=self.get_vcom(),
            fault=self.get_fault(),
            temperature=self.get_temperature(),
        )
