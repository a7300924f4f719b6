"""Pydantic models for device state and operation results."""

from plhwtools.models.devices import AdcReading, CpldInfo, EpdcOption
from plhwtools.models.eeprom import EepromTransferOptions, SelfTestResult, TransferResult
from plhwtools.models.pmic import (
    FaultCode,
    HvPmicState,
    PmicTemperature,
    PowerMode,
    SequenceRail,
    SequenceTiming,
    Tps65185State,
)
from plhwtools.models.power import PowerDirection, SequenceReport, StepOutcome

__all__ = [
    "AdcReading",
    "CpldInfo",
    "EepromTransferOptions",
    "EpdcOption",
    "FaultCode",
    "HvPmicState",
    "PmicTemperature",
    "PowerDirection",
    "PowerMode",
    "SelfTestResult",
    "SequenceRail",
    "SequenceReport",
    "SequenceTiming",
    "StepOutcome",
    "Tps65185State",
    "TransferResult",
]
