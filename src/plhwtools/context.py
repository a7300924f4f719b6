"""Per-invocation run context: configuration, lazily created drivers and
the abort token.

At most one driver exists per device kind.  Each driver owns its own
bus handle, and close() releases every driver that was created, exactly
once, in a fixed order.
"""

from __future__ import annotations

from typing import Callable

from plhwtools.config import PlhwConfig
from plhwtools.drivers.base import Device
from plhwtools.drivers.cpld import Cpld
from plhwtools.drivers.eeprom import Eeprom
from plhwtools.drivers.epdc import Epdc
from plhwtools.drivers.max5820 import Max5820
from plhwtools.drivers.max11607 import Max11607
from plhwtools.drivers.max17135 import Max17135
from plhwtools.drivers.pbtn import PushButtons
from plhwtools.drivers.pmic import HvPmic, PmicVariant
from plhwtools.drivers.tps65185 import Tps65185
from plhwtools.exceptions import PlhwError
from plhwtools.models.eeprom import EepromTransferOptions
from plhwtools.transport.bus import Bus, I2cBus
from plhwtools.utils.logging import get_logger
from plhwtools.utils.polling import AbortToken

logger = get_logger(__name__)

RELEASE_ORDER: tuple[str, ...] = ("cpld", "pmic", "dac", "adc", "eeprom", "pbtn", "epdc")

PMIC_CLASSES: dict[PmicVariant, type[HvPmic]] = {
    PmicVariant.MAX17135: Max17135,
    PmicVariant.TPS65185: Tps65185,
}


class RunContext:
    """Everything one command invocation needs to reach the hardware.

    Address resolution for a device: the ``-a`` override when the
    command works on a single device, then the device's entry in the
    configuration ``i2c_addresses`` table, then the chip default.
    """

    def __init__(
        self,
        config: PlhwConfig | None = None,
        bus_path: str | None = None,
        address: int | None = None,
        options: str | None = None,
        bus_factory: Callable[[str], Bus] = I2cBus,
        abort: AbortToken | None = None,
    ) -> None:
        self._config = config or PlhwConfig()
        self._bus_path = bus_path or self._config.i2c_bus
        self._address = address
        self._options = options
        self._bus_factory = bus_factory
        self._abort = abort or AbortToken()
        self._use_default_addresses = False
        self._devices: dict[str, Device] = {}
        self._closed = False

    @property
    def config(self) -> PlhwConfig:
        return self._config

    @property
    def bus_path(self) -> str:
        return self._bus_path

    @property
    def address(self) -> int | None:
        return self._address

    @property
    def options(self) -> str | None:
        return self._options

    @property
    def abort(self) -> AbortToken:
        return self._abort

    @property
    def devices(self) -> dict[str, Device]:
        """Drivers created so far, by device kind."""
        return dict(self._devices)

    def use_default_addresses(self) -> None:
        """Ignore the ``-a`` override; used by multi-device commands."""
        if self._address is not None:
            logger.warning("address_override_ignored", address=f"0x{self._address:02X}")
        self._use_default_addresses = True

    def _resolve_address(self, kind: str, override: int | None = None) -> int | None:
        if override is not None:
            return override
        if self._address is not None and not self._use_default_addresses:
            return self._address
        return self._config.i2c_addresses.get(kind)

    def _get(self, kind: str, build: Callable[[Bus, int | None], Device]) -> Device:
        device = self._devices.get(kind)
        if device is None:
            if self._closed:
                raise PlhwError("run context already closed")
            device = build(self._bus_factory(self._bus_path), self._resolve_address(kind))
            self._devices[kind] = device
            logger.debug(
                "device_created",
                kind=kind,
                driver=type(device).__name__,
                bus=self._bus_path,
                address=f"0x{device.address:02X}",
            )
        return device

    @property
    def cpld(self) -> Cpld:
        return self._get("cpld", Cpld)

    @property
    def pmic(self) -> HvPmic:
        return self._get("pmic", PMIC_CLASSES[self._config.pmic])

    @property
    def dac(self) -> Max5820:
        return self._get("dac", Max5820)

    @property
    def adc(self) -> Max11607:
        return self._get(
            "adc",
            lambda bus, addr: Max11607(bus, addr, external_ref_v=self._config.adc_external_ref_v),
        )

    @property
    def pbtn(self) -> PushButtons:
        return self._get(
            "pbtn",
            lambda bus, addr: PushButtons(bus, addr, timeout_s=self._config.pbtn_timeout_s),
        )

    @property
    def epdc(self) -> Epdc:
        return self._get("epdc", Epdc)

    def get_eeprom(self, options: EepromTransferOptions | None = None) -> Eeprom:
        """Return the EEPROM driver, created with *options* on first use."""
        existing = self._devices.get("eeprom")
        if existing is not None:
            return existing
        options = options or EepromTransferOptions()
        address = self._resolve_address("eeprom", options.address)

        def build(bus: Bus, _addr: int | None) -> Eeprom:
            eeprom = Eeprom(bus, address, model=self._config.eeprom_model)
            if options.i2c_block_size is not None:
                eeprom.block_size = options.i2c_block_size
            if options.page_size is not None:
                eeprom.page_size = options.page_size
            return eeprom

        return self._get("eeprom", build)

    def close(self) -> None:
        """Release every created driver once, in RELEASE_ORDER."""
        if self._closed:
            return
        self._closed = True
        for kind in RELEASE_ORDER:
            device = self._devices.pop(kind, None)
            if device is None:
                continue
            try:
                device.close()
            except (PlhwError, OSError) as exc:
                logger.warning("device_release_failed", kind=kind, error=str(exc))

    def __enter__(self) -> RunContext:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
