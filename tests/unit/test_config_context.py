"""Tests for the configuration store and the per-invocation run context."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from plhwtools import config as config_module
from plhwtools.config import PlhwConfig, config_search_path, load_config
from plhwtools.context import RELEASE_ORDER, RunContext
from plhwtools.drivers.max17135 import Max17135
from plhwtools.drivers.pmic import PmicVariant
from plhwtools.drivers.tps65185 import Tps65185
from plhwtools.exceptions import ConfigError, InvalidParameterError, PlhwError
from plhwtools.models.eeprom import EepromTransferOptions


@pytest.fixture(autouse=True)
def isolated_search_path(tmp_path, monkeypatch):
    monkeypatch.delenv(config_module.CONFIG_ENV_VAR, raising=False)
    monkeypatch.setattr(config_module, "USER_CONFIG_PATH", tmp_path / "user.json")
    monkeypatch.setattr(config_module, "SYSTEM_CONFIG_PATH", tmp_path / "system.json")


def write_config(path, data):
    path.write_text(json.dumps(data) if not isinstance(data, str) else data)
    return path


class TestLoadConfig:
    def test_defaults_without_file(self):
        config = load_config()
        assert config == PlhwConfig()
        assert config.i2c_bus == "/dev/i2c-1"
        assert config.pmic == PmicVariant.MAX17135
        assert config.eeprom_model == "24aa256"

    def test_env_var_has_priority(self, tmp_path, monkeypatch):
        write_config(tmp_path / "user.json", {"i2c_bus": "/dev/i2c-4"})
        env = write_config(tmp_path / "env.json", {"i2c_bus": "/dev/i2c-2"})
        monkeypatch.setenv("PLHW_CONFIG", str(env))
        assert config_search_path()[0] == env
        assert load_config().i2c_bus == "/dev/i2c-2"

    def test_user_file_before_system(self, tmp_path):
        write_config(tmp_path / "user.json", {"pmic": "tps65185"})
        write_config(tmp_path / "system.json", {"pmic": "max17135"})
        assert load_config().pmic == PmicVariant.TPS65185

    def test_explicit_path(self, tmp_path):
        path = write_config(tmp_path / "board.json", {
            "eeprom_model": "m24c32",
            "pok_timeout_s": 0.5,
            "i2c_addresses": {"cpld": "0x71", "display_eeprom": 84},
        })
        config = load_config(path)
        assert config.eeprom_model == "m24c32"
        assert config.pok_timeout_s == 0.5
        assert config.i2c_addresses == {"cpld": 0x71, "display_eeprom": 0x54}

    @pytest.mark.parametrize(
        "content, message",
        [
            ("{not json", "malformed"),
            ("[1, 2]", "expected a JSON object"),
            ({"pmic": "max9999"}, "pmic"),
            ({"eeprom_model": "24c02"}, "unknown EEPROM model"),
            ({"i2c_addresses": {"cpld": "0x80"}}, "invalid I2C address"),
            ({"i2c_addresses": {"cpld": "zz"}}, "invalid I2C address"),
            ({"colour": "blue"}, "colour"),
            ({"pok_timeout_s": 0}, "pok_timeout_s"),
        ],
    )
    def test_invalid_file(self, tmp_path, content, message):
        path = write_config(tmp_path / "bad.json", content)
        with pytest.raises(ConfigError, match=message):
            load_config(path)

    def test_unreadable_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read"):
            load_config(tmp_path / "missing.json")

    def test_lookup_address(self):
        config = PlhwConfig(i2c_addresses={"eeprom2": "0x51"})
        assert config.lookup_address("eeprom2") == 0x51
        with pytest.raises(InvalidParameterError, match="unknown I2C address name"):
            config.lookup_address("eeprom3")


class TestRunContext:
    @pytest.fixture
    def buses(self):
        return []

    @pytest.fixture
    def closed(self):
        return []

    @pytest.fixture
    def factory(self, buses, closed):
        def make(path):
            bus = MagicMock()
            bus.path = path
            bus.close.side_effect = lambda b=bus: closed.append(b)
            buses.append(bus)
            return bus
        return make

    def test_drivers_created_lazily_once(self, factory, buses):
        run = RunContext(bus_factory=factory)
        assert run.devices == {}
        assert run.cpld is run.cpld
        assert len(buses) == 1
        assert buses[0].path == "/dev/i2c-1"

    def test_bus_path_override(self, factory, buses):
        run = RunContext(config=PlhwConfig(i2c_bus="/dev/i2c-3"), bus_factory=factory)
        run.dac
        assert buses[0].path == "/dev/i2c-3"
        run = RunContext(bus_path="/dev/i2c-7", bus_factory=factory)
        run.dac
        assert buses[1].path == "/dev/i2c-7"

    def test_pmic_variant_from_config(self, factory):
        assert isinstance(RunContext(bus_factory=factory).pmic, Max17135)
        config = PlhwConfig(pmic="tps65185")
        assert isinstance(RunContext(config=config, bus_factory=factory).pmic, Tps65185)

    def test_address_resolution(self, factory):
        config = PlhwConfig(i2c_addresses={"cpld": "0x71"})
        assert RunContext(config=config, bus_factory=factory).cpld.address == 0x71
        assert RunContext(config=config, bus_factory=factory).dac.address == 0x38
        run = RunContext(config=config, address=0x72, bus_factory=factory)
        assert run.cpld.address == 0x72

    def test_default_addresses_ignore_override(self, factory):
        config = PlhwConfig(i2c_addresses={"pmic": "0x49"})
        run = RunContext(config=config, address=0x11, bus_factory=factory)
        run.use_default_addresses()
        assert run.cpld.address == 0x70
        assert run.pmic.address == 0x49

    def test_eeprom_options(self, factory):
        config = PlhwConfig(eeprom_model="m24c32")
        run = RunContext(config=config, address=0x52, bus_factory=factory)
        options = EepromTransferOptions(i2c_block_size=32, page_size=16, address=0x53)
        eeprom = run.get_eeprom(options)
        assert eeprom.address == 0x53
        assert eeprom.size == 4096
        assert eeprom.block_size == 32
        assert eeprom.page_size == 16
        assert run.get_eeprom() is eeprom

    def test_eeprom_uses_address_override(self, factory):
        run = RunContext(address=0x52, bus_factory=factory)
        assert run.get_eeprom().address == 0x52

    def test_close_in_release_order_once(self, factory, closed):
        run = RunContext(bus_factory=factory)
        created = [run.epdc, run.adc, run.get_eeprom(), run.cpld, run.pmic]
        buses = {type(d).__name__: d.bus for d in created}

        run.close()
        run.close()

        assert closed == [
            buses["Cpld"], buses["Max17135"], buses["Max11607"], buses["Eeprom"], buses["Epdc"],
        ]
        assert run.devices == {}

    def test_close_continues_after_failure(self, factory, closed, buses):
        with RunContext(bus_factory=factory) as run:
            run.cpld
            run.dac
            buses[0].close.side_effect = OSError("gone")
        assert closed == [buses[1]]

    def test_no_devices_after_close(self, factory):
        run = RunContext(bus_factory=factory)
        run.close()
        with pytest.raises(PlhwError, match="closed"):
            run.cpld

    def test_release_order_covers_all_kinds(self):
        assert set(RELEASE_ORDER) == {"cpld", "pmic", "dac", "adc", "eeprom", "pbtn", "epdc"}
