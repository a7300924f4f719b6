"""PMIC fault, timing and status models."""

from __future__ import annotations

from enum import IntEnum, StrEnum

from pydantic import BaseModel, Field, field_validator

NB_TIMINGS = 8
SEQUENCE_DELAYS_MS: tuple[int, ...] = (3, 6, 9, 12)


class FaultCode(IntEnum):
    """Class of hardware fault latched by the power sequencer."""
    NONE = 0
    FBPG = 1      # positive feedback (VPOS/VGH) power-good
    HVINP = 2     # HV input positive overcurrent
    HVINN = 3     # HV input negative overcurrent
    FBNG = 4      # negative feedback (VNEG/VGL) power-good
    HVINPSC = 5   # HV input positive short circuit
    HVINNSC = 6   # HV input negative short circuit
    OT = 7        # overtemperature


class PowerMode(StrEnum):
    """Coarse TPS65185 power state."""
    ACTIVE = "active"
    STANDBY = "standby"


class SequenceDirection(StrEnum):
    UP = "up"
    DOWN = "down"


class SequenceRail(StrEnum):
    """Rails with an independent strobe slot on the TPS65185."""
    VDDH = "vddh"
    VPOS = "vpos"
    VEE = "vee"
    VNEG = "vneg"


class SequenceTiming(BaseModel):
    """Power-up or power-down strobe assignment and strobe delays.

    ``strobes`` maps each rail to a strobe slot 1-4; ``delays_ms`` holds
    the delay of each strobe slot in order.
    """

    strobes: dict[SequenceRail, int]
    delays_ms: list[int] = Field(min_length=4, max_length=4)

    @field_validator("strobes")
    @classmethod
    def _check_strobes(cls, v: dict[SequenceRail, int]) -> dict[SequenceRail, int]:
        missing = set(SequenceRail) - set(v)
        if missing:
            raise ValueError(f"missing strobe for {', '.join(sorted(missing))}")
        for rail, strobe in v.items():
            if not 1 <= strobe <= 4:
                raise ValueError(f"invalid strobe {strobe} for {rail} (valid: 1 - 4)")
        return v

    @field_validator("delays_ms")
    @classmethod
    def _check_delays(cls, v: list[int]) -> list[int]:
        for delay in v:
            if delay not in SEQUENCE_DELAYS_MS:
                raise ValueError(
                    f"invalid strobe delay {delay} ms "
                    f"(valid: {', '.join(str(d) for d in SEQUENCE_DELAYS_MS)})"
                )
        return v


class PmicTemperature(BaseModel):
    """Temperature readings in degrees Celsius."""

    internal_celsius: float | None = None
    external_celsius: float | None = None
    sensor_enabled: bool | None = None


class HvPmicState(BaseModel):
    """Full MAX17135 status dump."""

    prod_id: int
    prod_rev: int
    switches: dict[str, bool] = Field(default_factory=dict)
    timings: list[int] = Field(default_factory=list)
    vcom: int
    fault: FaultCode
    temperature: PmicTemperature = Field(default_factory=PmicTemperature)


class Tps65185State(BaseModel):
    """Full TPS65185 status dump."""

    revision: int
    switches: dict[str, bool] = Field(default_factory=dict)
    vcom: int
    power_mode: PowerMode
    power_good: bool
    fault: FaultCode
    up_sequence: SequenceTiming
    down_sequence: SequenceTiming
    temperature: PmicTemperature = Field(default_factory=PmicTemperature)

    @property
    def vcom_volts(self) -> float:
        return -self.vcom * 0.01
