"""Power sequencing and EEPROM transfer engines."""

from plhwtools.core.eeprom_transfer import EepromTransfer, parse_eeprom_options
from plhwtools.core.power_sequence import (
    POWER_SEQUENCES,
    PowerSequence,
    PowerStep,
    get_power_sequence,
    push_sequence_timings,
    run_power,
    run_power_steps,
)

__all__ = [
    "EepromTransfer",
    "POWER_SEQUENCES",
    "PowerSequence",
    "PowerStep",
    "get_power_sequence",
    "parse_eeprom_options",
    "push_sequence_timings",
    "run_power",
    "run_power_steps",
]
