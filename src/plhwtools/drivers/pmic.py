"""Capability interface shared by the two HV PMIC variants.

Exactly one variant is fitted on a given board; which one is decided by
configuration, never by probing the bus.
"""

from __future__ import annotations

import abc
from enum import StrEnum

from plhwtools.drivers.base import Device
from plhwtools.drivers.switches import SwitchTable
from plhwtools.exceptions import check_range
from plhwtools.models.pmic import FaultCode, PmicTemperature
from plhwtools.utils.logging import get_logger
from plhwtools.utils.polling import AbortToken, poll_until

logger = get_logger(__name__)

DEFAULT_POK_TIMEOUT_S = 2.0
DEFAULT_POLL_S = 0.01


class PmicVariant(StrEnum):
    MAX17135 = "max17135"
    TPS65185 = "tps65185"


class HvPmic(Device, abc.ABC):
    """Enable rails, VCOM, faults, power-OK and temperature of an HV PMIC."""

    SWITCHES: SwitchTable
    VCOM_MAX: int

    @abc.abstractmethod
    def get_switch(self, switch_id: int) -> bool:
        """Return the state of one enable rail."""

    @abc.abstractmethod
    def set_switch(self, switch_id: int, on: bool) -> None:
        """Turn one enable rail on or off."""

    @abc.abstractmethod
    def get_vcom(self) -> int:
        """Return the raw VCOM register value."""

    @abc.abstractmethod
    def _write_vcom(self, value: int) -> None:
        """Write an already validated VCOM register value."""

    @abc.abstractmethod
    def get_fault(self) -> FaultCode:
        """Read the current fault class; never cached."""

    @abc.abstractmethod
    def is_power_ok(self) -> bool:
        """Return True when the HV rails are reported stable."""

    @abc.abstractmethod
    def get_temperature(self) -> PmicTemperature:
        """Read the temperature sensor(s)."""

    def set_vcom(self, value: int) -> None:
        """Validate and write the VCOM register.

        Raises:
            InvalidParameterError: If value is outside [0, VCOM_MAX]; no
                register is written in that case.
        """
        check_range(value, 0, self.VCOM_MAX, "VCOM value")
        logger.info("pmic_vcom_set", pmic=self.NAME, vcom=value, hex=f"0x{value:03X}")
        self._write_vcom(value)

    def wait_for_pok(
        self,
        timeout_s: float = DEFAULT_POK_TIMEOUT_S,
        poll_s: float = DEFAULT_POLL_S,
        abort: AbortToken | None = None,
    ) -> None:
        """Block until power OK is reported.

        Raises:
            TimeoutError: If POK is not seen within *timeout_s*.
            AbortedError: If the user aborts while waiting.
        """
        poll_until(
            self.is_power_ok,
            bool,
            f"{self.NAME} power OK",
            timeout_s=timeout_s,
            poll_s=poll_s,
            abort=abort,
        )
        logger.debug("pmic_power_ok", pmic=self.NAME)
