"""Register-level drivers for the e-paper board chips."""

from plhwtools.drivers.base import Device
from plhwtools.drivers.cpld import CPLD_SWITCHES, Cpld
from plhwtools.drivers.eeprom import EEPROM_MODELS, Eeprom
from plhwtools.drivers.epdc import EPDC_OPTIONS, Epdc
from plhwtools.drivers.max5820 import DacChannel, DacPower, Max5820
from plhwtools.drivers.max11607 import AdcReference, Max11607
from plhwtools.drivers.max17135 import Max17135
from plhwtools.drivers.pbtn import PushButtons
from plhwtools.drivers.pmic import HvPmic, PmicVariant
from plhwtools.drivers.switches import SwitchEntry, SwitchTable, switch_on_off
from plhwtools.drivers.tps65185 import Tps65185

__all__ = [
    "AdcReference",
    "CPLD_SWITCHES",
    "Cpld",
    "DacChannel",
    "DacPower",
    "Device",
    "EEPROM_MODELS",
    "EPDC_OPTIONS",
    "Eeprom",
    "Epdc",
    "HvPmic",
    "Max11607",
    "Max17135",
    "Max5820",
    "PmicVariant",
    "PushButtons",
    "SwitchEntry",
    "SwitchTable",
    "Tps65185",
    "switch_on_off",
]
