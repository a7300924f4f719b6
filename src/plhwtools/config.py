"""Board configuration store.

A single JSON object read from the first existing file among
``$PLHW_CONFIG``, ``~/.config/plhwtools/config.json`` and
``/etc/plhwtools.json``.  Every key is optional.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from plhwtools.drivers.eeprom import DEFAULT_MODEL, EEPROM_MODELS
from plhwtools.drivers.max11607 import DEFAULT_EXTERNAL_REF_V
from plhwtools.drivers.pbtn import DEFAULT_WAIT_TIMEOUT_S
from plhwtools.drivers.pmic import DEFAULT_POK_TIMEOUT_S, PmicVariant
from plhwtools.exceptions import ConfigError, InvalidParameterError
from plhwtools.transport.bus import DEFAULT_I2C_BUS
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_ENV_VAR = "PLHW_CONFIG"
USER_CONFIG_PATH = Path("~/.config/plhwtools/config.json")
SYSTEM_CONFIG_PATH = Path("/etc/plhwtools.json")


class PlhwConfig(BaseModel):
    """Deployment settings for one board."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    i2c_bus: str = DEFAULT_I2C_BUS
    pmic: PmicVariant = PmicVariant.MAX17135
    eeprom_model: str = DEFAULT_MODEL
    adc_external_ref_v: float = Field(default=DEFAULT_EXTERNAL_REF_V, gt=0)
    pok_timeout_s: float = Field(default=DEFAULT_POK_TIMEOUT_S, gt=0)
    pbtn_timeout_s: float = Field(default=DEFAULT_WAIT_TIMEOUT_S, gt=0)
    i2c_addresses: dict[str, int] = Field(default_factory=dict)

    @field_validator("eeprom_model")
    @classmethod
    def _check_model(cls, v: str) -> str:
        if v not in EEPROM_MODELS:
            raise ValueError(
                f"unknown EEPROM model {v!r} (valid: {', '.join(EEPROM_MODELS)})"
            )
        return v

    @field_validator("i2c_addresses", mode="before")
    @classmethod
    def _parse_addresses(cls, v: object) -> object:
        if not isinstance(v, dict):
            return v
        parsed = {}
        for name, value in v.items():
            if isinstance(value, str):
                try:
                    value = int(value, 0)
                except ValueError:
                    raise ValueError(f"invalid I2C address for {name}: {value!r}") from None
            if not isinstance(value, int) or not 0 <= value <= 0x7F:
                raise ValueError(f"invalid I2C address for {name}: {value!r}")
            parsed[name] = value
        return parsed

    def lookup_address(self, name: str) -> int:
        """Return the I2C address registered under *name*."""
        try:
            return self.i2c_addresses[name]
        except KeyError:
            raise InvalidParameterError(f"unknown I2C address name: {name}") from None


def config_search_path() -> list[Path]:
    paths = []
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        paths.append(Path(env))
    paths.append(USER_CONFIG_PATH.expanduser())
    paths.append(SYSTEM_CONFIG_PATH)
    return paths


def load_config(path: str | Path | None = None) -> PlhwConfig:
    """Load the configuration from *path* or the first file found.

    Raises:
        ConfigError: If the file cannot be read or does not describe a
            valid configuration.
    """
    if path is None:
        path = next((p for p in config_search_path() if p.is_file()), None)
        if path is None:
            logger.debug("config_defaults")
            return PlhwConfig()

    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"malformed config file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"malformed config file {path}: expected a JSON object")

    try:
        config = PlhwConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"invalid config file {path}: "
            + "; ".join(f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors())
        ) from exc

    logger.debug("config_loaded", path=str(path), pmic=str(config.pmic))
    return config
