"""Tests for the plhwtools CLI, run against the in-memory board."""

from __future__ import annotations

import json
import os
import stat

import pytest
from click.testing import CliRunner

from plhwtools.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


def write_config(path, **values):
    settings = {
        "eeprom_model": "24lc014",
        "pok_timeout_s": 0.05,
        "pbtn_timeout_s": 0.05,
        **values,
    }
    path.write_text(json.dumps(settings))
    return path


@pytest.fixture
def config_path(tmp_path):
    return write_config(tmp_path / "plhw.json")


@pytest.fixture
def invoke(runner, board, config_path):
    def run(*args, input=None, config=None):
        return runner.invoke(
            cli,
            ["--config", str(config or config_path), *args],
            obj={"bus_factory": lambda path: board},
            input=input,
        )
    return run


def json_payload(output):
    """Extract the indented JSON document from mixed command output."""
    lines = output.splitlines()
    start = next(i for i, line in enumerate(lines) if line in ("{", "["))
    end = max(i for i, line in enumerate(lines) if line in ("}", "]"))
    return json.loads("\n".join(lines[start:end + 1]))


class TestGlobalOptions:
    def test_version(self, runner):
        result = runner.invoke(cli, ["-v"])
        assert result.exit_code == 0
        assert "plhwtools v0.6.0 - Plastic Logic hardware tools" in result.output
        assert "Copyright (C) 2011, 2012, 2013 Plastic Logic Limited" in result.output
        assert "GNU General Public License" in result.output

    def test_help_for_one_command(self, invoke):
        result = invoke("help", "power")
        assert result.exit_code == 0
        assert "power on or off sequence" in result.output

    def test_help_unknown_command(self, invoke):
        result = invoke("help", "frobnicate")
        assert result.exit_code == 1
        assert "unknown command: frobnicate" in result.output

    def test_invalid_address(self, invoke):
        result = invoke("-a", "zz", "cpld")
        assert result.exit_code == 2

    def test_malformed_config(self, invoke, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("{oops")
        result = invoke("cpld", config=bad)
        assert result.exit_code == 1
        assert "command_failed" in result.output
        assert "malformed config file" in result.output

    def test_bus_closed_after_command(self, invoke, board):
        invoke("cpld", "version")
        assert board.close_count == 1
        assert not board.is_open


class TestCpld:
    def test_info(self, invoke):
        result = invoke("cpld")
        assert result.exit_code == 0
        assert "CPLD v5, board id: 2" in result.output
        assert "CPLD data: [00 05 02]" in result.output

    def test_info_json(self, invoke):
        result = invoke("--json-output", "cpld")
        assert result.exit_code == 0
        assert json_payload(result.output) == {"version": 5, "board_id": 2, "data": [0, 5, 2]}

    def test_version(self, invoke):
        result = invoke("cpld", "version")
        assert result.output.strip().splitlines()[-1] == "5"

    def test_switch_set_and_get(self, invoke, board):
        assert invoke("cpld", "vcom_psu", "on").exit_code == 0
        assert board.chips[0x70].data[0] == 0x08
        result = invoke("cpld", "vcom_psu")
        assert "vcom_psu: on" in result.output

    def test_switch_bad_state(self, invoke, board):
        result = invoke("cpld", "hv", "maybe")
        assert result.exit_code == 1
        assert "expected [on off]" in result.output
        assert board.writes_to(0x70) == []

    def test_address_override(self, invoke):
        result = invoke("-a", "0x71", "cpld")
        assert result.exit_code == 1
        assert "addr=0x71" in result.output


class TestHvPmic:
    def test_dump(self, invoke):
        result = invoke("hvpmic")
        assert result.exit_code == 0
        assert "HV PMIC id: 0x4D, rev: 0x01" in result.output
        assert "fault: NONE" in result.output

    def test_set_vcom(self, invoke, board):
        assert invoke("hvpmic", "vcom", "0xAB").exit_code == 0
        assert board.chips[0x48].regs[0x08] == 0xAB
        assert "171 (0xAB)" in invoke("hvpmic", "vcom").output

    def test_vcom_out_of_range(self, invoke, board):
        result = invoke("hvpmic", "vcom", "256")
        assert result.exit_code == 1
        assert board.writes_to(0x48) == []

    def test_timings_from_sequence_name(self, invoke, board):
        assert invoke("hvpmic", "timings", "seq0").exit_code == 0
        assert list(board.chips[0x48].regs[0x10:0x18]) == [8, 2, 11, 3, 0, 0, 0, 0]

    def test_timings_values(self, invoke, board):
        assert invoke("hvpmic", "timings", "1", "2", "3").exit_code == 0
        assert list(board.chips[0x48].regs[0x10:0x13]) == [1, 2, 3]

    @pytest.mark.parametrize("value", ["0x08", "8", "0b1000"])
    def test_single_timing_value(self, invoke, board, value):
        result = invoke("hvpmic", "timings", value)
        assert result.exit_code == 0
        assert board.writes_to(0x48) == [bytes([0x10, 8])]

    def test_wrong_variant(self, invoke, tmp_path):
        tps = write_config(tmp_path / "tps.json", pmic="tps65185")
        result = invoke("hvpmic", "fault", config=tps)
        assert result.exit_code == 1
        assert "configured with a tps65185 PMIC" in result.output


class TestTps65185:
    @pytest.fixture
    def tps_config(self, tmp_path):
        return write_config(tmp_path / "tps.json", pmic="tps65185")

    def test_power_mode(self, invoke, board, tps_config):
        assert invoke("tps65185", "mode", "active", config=tps_config).exit_code == 0
        assert board.chips[0x68].regs[0x0F] == 0x5A
        result = invoke("tps65185", "mode", config=tps_config)
        assert result.output.strip().splitlines()[-1] == "active"

    def test_set_sequence(self, invoke, board, tps_config):
        result = invoke("tps65185", "sequence", "up", "1,2,3,4", "3,6,9,12", config=tps_config)
        assert result.exit_code == 0
        assert board.chips[0x68].regs[0x09] == 0b00_01_10_11
        assert board.chips[0x68].regs[0x0A] == 0b11_10_01_00

    def test_sequence_needs_delays(self, invoke, tps_config):
        result = invoke("tps65185", "sequence", "down", "1,2,3,4", config=tps_config)
        assert result.exit_code == 1
        assert "DELAYS" in result.output


class TestDacAdc:
    def test_dac_value(self, invoke, board):
        assert invoke("dac", "A", "171").exit_code == 0
        assert board.writes_to(0x38) == [bytes([0x0A, 0xB0])]

    def test_dac_power(self, invoke, board):
        assert invoke("dac", "B", "off100k").exit_code == 0
        assert board.writes_to(0x38) == [bytes([0xF0, 0x0B])]

    def test_dac_bad_channel(self, invoke, board):
        assert invoke("dac", "C", "1").exit_code == 1
        assert board.writes_to(0x38) == []

    def test_adc_channel(self, invoke):
        result = invoke("adc", "internal", "1")
        assert result.exit_code == 0
        assert "1.024000" in result.output

    def test_adc_all_channels(self, invoke):
        result = invoke("adc")
        assert "ch. 2, result: 1023" in result.output


class TestPbtn:
    def test_procedure_passes(self, invoke, board):
        board.chips[0x20].pressed = [0x04, 0x00, 0x10, 0x00, 0x01]
        result = invoke("pbtn")
        assert result.exit_code == 0
        assert "result: 0x01 #5" in result.output

    def test_timeouts_are_counted(self, invoke):
        result = invoke("pbtn")
        assert result.exit_code == 1
        assert "pbtn_step_timeout" in result.output
        assert "failed_steps=3" in result.output


class TestEeprom:
    def test_export_to_file(self, invoke, board, tmp_path):
        board.chips[0x50].mem[:] = bytes(range(128))
        out = tmp_path / "dump.bin"
        result = invoke("-o", "data_size=64,skip=16", "eeprom", "e2f", str(out))
        assert result.exit_code == 0
        assert out.read_bytes() == bytes(range(16, 80))
        assert not os.stat(out).st_mode & (stat.S_IWUSR | stat.S_IWGRP | stat.S_IWOTH)

    def test_import_from_stdin(self, invoke, board):
        result = invoke("-o", "skip=32,data_size=16", "eeprom", "f2e", input=b"\x5A" * 16)
        assert result.exit_code == 0
        assert bytes(board.chips[0x50].mem[32:48]) == b"\x5A" * 16
        assert board.chips[0x50].mem[48] == 0xFF

    def test_import_with_padding(self, invoke, board, tmp_path):
        src = tmp_path / "short.bin"
        src.write_bytes(b"\x01\x02")
        result = invoke("-o", "zero_padding,data_size=8", "eeprom", "f2e", str(src))
        assert result.exit_code == 0
        assert bytes(board.chips[0x50].mem[:8]) == b"\x01\x02" + bytes(6)

    def test_missing_input_file(self, invoke, tmp_path):
        result = invoke("eeprom", "f2e", str(tmp_path / "nope.bin"))
        assert result.exit_code == 1
        assert "failed to open the file" in result.output

    def test_bad_option_before_io(self, invoke, board):
        result = invoke("-o", "data_size=129", "eeprom", "e2f")
        assert result.exit_code == 1
        assert "beyond EEPROM size" in result.output
        assert board.log == []

    def test_self_test_confirmed(self, invoke):
        result = invoke("eeprom", "full_rw", input="y")
        assert result.exit_code == 0
        assert "All good." in result.output

    def test_self_test_declined(self, invoke, board):
        result = invoke("eeprom", "full_rw", input="n")
        assert result.exit_code == 1
        assert board.chips[0x50].writes == []

    def test_self_test_mismatch(self, invoke, board):
        chip = board.chips[0x50]
        chip.corrupt = {offset: 0x00 for offset in range(40, 48)}
        result = invoke("--json-output", "eeprom", "full_rw", input="y")
        assert result.exit_code == 1
        report = json_payload(result.output)
        assert report["passed"] is False
        assert 40 <= report["mismatch_offset"] < 48


class TestPower:
    def test_power_on(self, invoke, board):
        result = invoke("power", "on", "seq0", "100")
        assert result.exit_code == 0
        assert "Power on" in result.output
        assert board.chips[0x70].data[0] == 0x1F

    def test_power_ignores_address_override(self, invoke, board):
        result = invoke("-a", "0x11", "power", "off")
        assert result.exit_code == 0
        assert "address_override_ignored" in result.output

    def test_vcom_with_off_rejected(self, invoke, board):
        result = invoke("power", "off", "seq0", "100")
        assert result.exit_code == 1
        assert "VCOM only applies to power on" in result.output
        assert board.log == []

    def test_failure_reports_step(self, invoke, board):
        board.chips[0x48].regs[0x0A] = 0x00
        result = invoke("--json-output", "power", "on")
        assert result.exit_code == 1
        assert "failed at step 3 (wait_pok)" in result.output
        report = json_payload(result.output)
        assert report["total_steps"] == 9
        assert len(report["steps"]) == 3


class TestEpdc:
    def test_get_option(self, invoke):
        result = invoke("epdc", "opt", "power_off_delay_ms")
        assert result.output.strip().splitlines()[-1] == "500"

    def test_set_option(self, invoke, board):
        assert invoke("epdc", "opt", "clear_on_exit", "0").exit_code == 0
        assert board.chips[0x49].regs[0x12] == 0

    def test_unknown_option(self, invoke, board):
        result = invoke("epdc", "opt", "gamma")
        assert result.exit_code == 1
        assert "invalid hardware option identifier" in result.output
        assert board.log == []
