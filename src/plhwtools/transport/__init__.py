"""I2C transport layer."""

from plhwtools.transport.bus import DEFAULT_I2C_BUS, Bus, I2cBus

__all__ = [
    "DEFAULT_I2C_BUS",
    "Bus",
    "I2cBus",
]
