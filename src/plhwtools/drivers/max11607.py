"""MAX11607 4-channel 10-bit ADC."""

from __future__ import annotations

from enum import StrEnum

from plhwtools.drivers.base import Device
from plhwtools.exceptions import BusError, InvalidParameterError, check_range
from plhwtools.models.devices import AdcReading
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

NB_CHANNELS = 4
RESOLUTION = 1024

SETUP_MARKER = 0x80
SETUP_NO_RESET = 0x02
CONFIG_SINGLE_ENDED = 0x01

# Each result's first byte carries six leading ones above the two MSBs
RESULT_PAD_MASK = 0xFC

INTERNAL_REF_V = 2.048
VDD_REF_V = 3.3
DEFAULT_EXTERNAL_REF_V = 2.5

# VCOM is measured through a 1/10 divider on its dedicated channel
VCOM_CHANNEL = 1
VCOM_COEFF = 10.0


class AdcReference(StrEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    VDD = "vdd"


_REF_SELECT: dict[AdcReference, int] = {
    AdcReference.VDD: 0b000,
    AdcReference.EXTERNAL: 0b010,
    AdcReference.INTERNAL: 0b101,
}


def decode_result(high: int, low: int) -> int:
    """Decode one 2-byte conversion result.

    Raises:
        BusError: If the padding bits are missing, which means the bytes
            did not come from a conversion.
    """
    if high & RESULT_PAD_MASK != RESULT_PAD_MASK:
        raise BusError(f"invalid ADC result 0x{high:02X}{low:02X}")
    return ((high & 0x03) << 8) | low


class Max11607(Device):
    """MAX11607 ADC; a scan converts all channels at once."""

    NAME = "adc"
    DEFAULT_ADDRESS = 0x34

    def __init__(self, bus, address: int | None = None,
                 external_ref_v: float = DEFAULT_EXTERNAL_REF_V) -> None:
        super().__init__(bus, address)
        self._external_ref_v = external_ref_v
        self._ref = AdcReference.INTERNAL
        self._results: list[int] | None = None

    @property
    def nb_channels(self) -> int:
        return NB_CHANNELS

    @property
    def reference(self) -> AdcReference:
        return self._ref

    @property
    def ref_volts(self) -> float:
        if self._ref == AdcReference.INTERNAL:
            return INTERNAL_REF_V
        if self._ref == AdcReference.EXTERNAL:
            return self._external_ref_v
        return VDD_REF_V

    def set_ref(self, ref: AdcReference) -> None:
        ref = AdcReference(ref)
        setup = SETUP_MARKER | (_REF_SELECT[ref] << 4) | SETUP_NO_RESET
        self._bus.write(self._address, bytes([setup]))
        self._ref = ref
        self._results = None
        logger.debug("adc_reference_set", ref=str(ref))

    def read_results(self) -> list[int]:
        """Scan channels 0 to N-1 and cache the raw results."""
        config = ((NB_CHANNELS - 1) << 1) | CONFIG_SINGLE_ENDED
        self._bus.write(self._address, bytes([config]))
        data = self._bus.read(self._address, NB_CHANNELS * 2)
        if len(data) != NB_CHANNELS * 2:
            raise BusError(f"short ADC read ({len(data)} bytes)", address=self._address)
        self._results = [
            decode_result(data[i], data[i + 1]) for i in range(0, len(data), 2)
        ]
        return list(self._results)

    def get_result(self, channel: int) -> int:
        check_range(channel, 0, NB_CHANNELS - 1, "channel number")
        if self._results is None:
            raise InvalidParameterError("no ADC results, read_results() first")
        return self._results[channel]

    def get_volts(self, result: int) -> float:
        return result * self.ref_volts / RESOLUTION

    def get_millivolts(self, result: int) -> int:
        return int(round(self.get_volts(result) * 1000))

    def reading(self, channel: int) -> AdcReading:
        raw = self.get_result(channel)
        return AdcReading(channel=channel, raw=raw, volts=self.get_volts(raw))

    def get_vcom_volts(self) -> float:
        return self.get_volts(self.get_result(VCOM_CHANNEL)) * VCOM_COEFF
