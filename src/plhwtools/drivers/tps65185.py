"""TPS65185 HV PMIC: rails, 9-bit VCOM, strobe sequencing and power modes."""

from __future__ import annotations

from enum import IntEnum

from pydantic import ValidationError

from plhwtools.drivers.pmic import DEFAULT_POK_TIMEOUT_S, DEFAULT_POLL_S, HvPmic
from plhwtools.drivers.switches import SwitchEntry, SwitchTable
from plhwtools.exceptions import InvalidParameterError
from plhwtools.models.pmic import (
    SEQUENCE_DELAYS_MS,
    FaultCode,
    PmicTemperature,
    PowerMode,
    SequenceDirection,
    SequenceRail,
    SequenceTiming,
    Tps65185State,
)
from plhwtools.utils.logging import get_logger
from plhwtools.utils.polling import AbortToken, poll_until

logger = get_logger(__name__)

# Register map
REG_TMST_VALUE = 0x00
REG_ENABLE = 0x01
REG_VCOM1 = 0x03
REG_VCOM2 = 0x04
REG_INT1 = 0x07
REG_INT2 = 0x08
REG_UPSEQ0 = 0x09
REG_UPSEQ1 = 0x0A
REG_DWNSEQ0 = 0x0B
REG_DWNSEQ1 = 0x0C
REG_TMST1 = 0x0D
REG_PG = 0x0F
REG_REVID = 0x10

ENABLE_ACTIVE = 1 << 7
ENABLE_STANDBY = 1 << 6

VCOM2_MSB = 1 << 0

TMST1_READ_THERM = 1 << 7
TMST1_CONV_END = 1 << 5

INT1_TSD = 1 << 6
INT1_HOT = 1 << 5
INT2_VDDH_UV = 1 << 6
INT2_VN_UV = 1 << 5
INT2_VPOS_UV = 1 << 4
INT2_VEE_UV = 1 << 3
INT2_VNEG_UV = 1 << 1

PG_VNEG = 1 << 1
PG_VEE = 1 << 3
PG_VPOS = 1 << 4
PG_VDDH = 1 << 6
PG_ALL = PG_VNEG | PG_VEE | PG_VPOS | PG_VDDH

# Bit offset of each rail's 2-bit strobe field in UPSEQ0 / DWNSEQ0
_STROBE_SHIFT: dict[SequenceRail, int] = {
    SequenceRail.VDDH: 6,
    SequenceRail.VPOS: 4,
    SequenceRail.VEE: 2,
    SequenceRail.VNEG: 0,
}

_SEQ_REGISTERS: dict[SequenceDirection, tuple[int, int]] = {
    SequenceDirection.UP: (REG_UPSEQ0, REG_UPSEQ1),
    SequenceDirection.DOWN: (REG_DWNSEQ0, REG_DWNSEQ1),
}

TEMP_CONVERSION_TIMEOUT_S = 0.5


class Tps65185Rail(IntEnum):
    """Bit position of each rail enable in REG_ENABLE."""
    VNEG = 0
    VEE = 1
    VPOS = 2
    VDDH = 3
    VCOM = 4
    V3P3 = 5


TPS65185_SWITCHES = SwitchTable(
    SwitchEntry("v3p3", Tps65185Rail.V3P3),
    SwitchEntry("vcom_en", Tps65185Rail.VCOM),
    SwitchEntry("vddh", Tps65185Rail.VDDH),
    SwitchEntry("vpos", Tps65185Rail.VPOS),
    SwitchEntry("vee", Tps65185Rail.VEE),
    SwitchEntry("vneg", Tps65185Rail.VNEG),
)


def make_sequence_timing(strobes: list[int], delays_ms: list[int]) -> SequenceTiming:
    """Build a SequenceTiming from strobe slots in VDDH, VPOS, VEE, VNEG order.

    Raises:
        InvalidParameterError: If the counts or values are invalid.
    """
    if len(strobes) != len(SequenceRail):
        raise InvalidParameterError(
            f"expected {len(SequenceRail)} strobe values (vddh, vpos, vee, vneg)"
        )
    try:
        return SequenceTiming(
            strobes=dict(zip(SequenceRail, strobes)),
            delays_ms=delays_ms,
        )
    except ValidationError as exc:
        raise InvalidParameterError(
            "; ".join(e["msg"] for e in exc.errors())
        ) from exc


def encode_sequence(timing: SequenceTiming) -> tuple[int, int]:
    """Return the (strobe register, delay register) pair for *timing*."""
    strobe_reg = 0
    for rail, shift in _STROBE_SHIFT.items():
        strobe_reg |= (timing.strobes[rail] - 1) << shift
    delay_reg = 0
    for slot, delay in enumerate(timing.delays_ms):
        delay_reg |= SEQUENCE_DELAYS_MS.index(delay) << (slot * 2)
    return strobe_reg, delay_reg


def decode_sequence(strobe_reg: int, delay_reg: int) -> SequenceTiming:
    strobes = {
        rail: ((strobe_reg >> shift) & 0x03) + 1
        for rail, shift in _STROBE_SHIFT.items()
    }
    delays = [SEQUENCE_DELAYS_MS[(delay_reg >> (slot * 2)) & 0x03] for slot in range(4)]
    return SequenceTiming(strobes=strobes, delays_ms=delays)


def decode_faults(int1: int, int2: int) -> FaultCode:
    """Map the interrupt status registers onto a FaultCode.

    Thermal faults take precedence, then positive rail and negative rail
    undervoltage.  The TPS65185 has no HV input current or short faults.
    """
    if int1 & (INT1_TSD | INT1_HOT):
        return FaultCode.OT
    if int2 & (INT2_VDDH_UV | INT2_VPOS_UV):
        return FaultCode.FBPG
    if int2 & (INT2_VEE_UV | INT2_VNEG_UV | INT2_VN_UV):
        return FaultCode.FBNG
    return FaultCode.NONE


class Tps65185(HvPmic):
    """TPS65185 HV PMIC with 9-bit VCOM (10 mV steps) and strobe sequencing."""

    NAME = "tps65185"
    DEFAULT_ADDRESS = 0x68
    SWITCHES = TPS65185_SWITCHES
    VCOM_MAX = 0x1FF

    def get_revision(self) -> int:
        return self._read_byte(REG_REVID)

    # --- Rails ---

    def get_switch(self, switch_id: int) -> bool:
        return bool(self._read_byte(REG_ENABLE) & (1 << Tps65185Rail(switch_id)))

    def set_switch(self, switch_id: int, on: bool) -> None:
        # ACTIVE/STANDBY are trigger bits and must not be written back
        value = self._read_byte(REG_ENABLE) & ~(ENABLE_ACTIVE | ENABLE_STANDBY)
        bit = 1 << Tps65185Rail(switch_id)
        value = (value | bit) if on else (value & ~bit)
        self._write_byte(REG_ENABLE, value & 0xFF)

    # --- VCOM ---

    def get_vcom(self) -> int:
        low = self._read_byte(REG_VCOM1)
        high = self._read_byte(REG_VCOM2) & VCOM2_MSB
        return (high << 8) | low

    def _write_vcom(self, value: int) -> None:
        self._write_byte(REG_VCOM1, value & 0xFF)
        self._update_bits(REG_VCOM2, VCOM2_MSB, bool(value & 0x100))

    # --- Sequencing ---

    def get_sequence(self, direction: SequenceDirection) -> SequenceTiming:
        strobe_addr, delay_addr = _SEQ_REGISTERS[SequenceDirection(direction)]
        return decode_sequence(self._read_byte(strobe_addr), self._read_byte(delay_addr))

    def set_sequence(self, direction: SequenceDirection, timing: SequenceTiming) -> None:
        strobe_addr, delay_addr = _SEQ_REGISTERS[SequenceDirection(direction)]
        strobe_reg, delay_reg = encode_sequence(timing)
        self._write_byte(strobe_addr, strobe_reg)
        self._write_byte(delay_addr, delay_reg)
        logger.info(
            "sequence_set",
            direction=str(direction),
            strobes={str(k): v for k, v in timing.strobes.items()},
            delays_ms=timing.delays_ms,
        )

    # --- Power mode ---

    def get_power_good(self) -> int:
        return self._read_byte(REG_PG)

    def is_power_ok(self) -> bool:
        return (self.get_power_good() & PG_ALL) == PG_ALL

    def get_power_mode(self) -> PowerMode:
        return PowerMode.ACTIVE if self.is_power_ok() else PowerMode.STANDBY

    def set_power_mode(
        self,
        mode: PowerMode,
        timeout_s: float = DEFAULT_POK_TIMEOUT_S,
        poll_s: float = DEFAULT_POLL_S,
        abort: AbortToken | None = None,
    ) -> None:
        """Request ACTIVE or STANDBY and block until power good confirms it."""
        mode = PowerMode(mode)
        value = self._read_byte(REG_ENABLE) & ~(ENABLE_ACTIVE | ENABLE_STANDBY)
        if mode == PowerMode.ACTIVE:
            request, expected = ENABLE_ACTIVE, PG_ALL
        else:
            request, expected = ENABLE_STANDBY, 0
        self._write_byte(REG_ENABLE, value | request)

        poll_until(
            self.get_power_good,
            lambda pg: (pg & PG_ALL) == expected,
            f"{self.NAME} {mode} mode",
            timeout_s=timeout_s,
            poll_s=poll_s,
            abort=abort,
        )
        logger.info("power_mode_set", pmic=self.NAME, mode=str(mode))

    # --- Status ---

    def get_fault(self) -> FaultCode:
        return decode_faults(self._read_byte(REG_INT1), self._read_byte(REG_INT2))

    def get_temperature(self, abort: AbortToken | None = None) -> PmicTemperature:
        self._update_bits(REG_TMST1, TMST1_READ_THERM, True)
        poll_until(
            lambda: self._read_byte(REG_TMST1),
            lambda v: bool(v & TMST1_CONV_END),
            f"{self.NAME} temperature conversion",
            timeout_s=TEMP_CONVERSION_TIMEOUT_S,
            abort=abort,
        )
        raw = self._read_byte(REG_TMST_VALUE)
        celsius = raw - 0x100 if raw & 0x80 else raw
        return PmicTemperature(external_celsius=float(celsius), sensor_enabled=True)

    def get_state(self) -> Tps65185State:
        return Tps65185State(
            revision=self.get_revision(),
            switches={e.name: self.get_switch(e.id) for e in self.SWITCHES},
            vcom=self.get_vcom(),
            power_mode=self.get_power_mode(),
            power_good=self.is_power_ok(),
            fault=self.get_fault(),
            up_sequence=self.get_sequence(SequenceDirection.UP),
            down_sequence=self.get_sequence(SequenceDirection.DOWN),
            temperature=self.get_temperature(),
        )
