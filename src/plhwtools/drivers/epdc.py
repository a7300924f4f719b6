"""Coarse hardware options of the e-paper display controller (ePDC)."""

from __future__ import annotations

from dataclasses import dataclass

from plhwtools.drivers.base import Device
from plhwtools.exceptions import InvalidParameterError, check_range
from plhwtools.models.devices import EpdcOption
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HwOption:
    name: str
    register: int
    width: int
    max_value: int
    description: str


EPDC_OPTIONS: dict[str, HwOption] = {
    o.name: o
    for o in (
        HwOption(
            "power_off_delay_ms", 0x10, 2, 0xFFFF,
            "delay between end of display update and HV power off",
        ),
        HwOption(
            "clear_on_exit", 0x12, 1, 1,
            "clear the screen when the ePDC is shut down",
        ),
    )
}


def get_option(name: str) -> HwOption:
    try:
        return EPDC_OPTIONS[name]
    except KeyError:
        raise InvalidParameterError(
            f"invalid hardware option identifier: {name} "
            f"(valid: {', '.join(EPDC_OPTIONS)})"
        ) from None


class Epdc(Device):
    """ePDC option registers; multi-byte values are big-endian."""

    NAME = "epdc"
    DEFAULT_ADDRESS = 0x49

    def get_hw_opt(self, name: str) -> EpdcOption:
        opt = get_option(name)
        value = int.from_bytes(self._read(opt.register, opt.width), "big")
        return EpdcOption(name=opt.name, value=value)

    def set_hw_opt(self, name: str, value: int) -> None:
        opt = get_option(name)
        check_range(value, 0, opt.max_value, opt.name)
        self._bus.write_register(
            self._address, opt.register, value.to_bytes(opt.width, "big")
        )
        logger.info("epdc_option_set", option=opt.name, value=value)
