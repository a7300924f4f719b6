"""Tests for the push buttons and ePDC option drivers."""

from __future__ import annotations

import pytest

from plhwtools.drivers.epdc import EPDC_OPTIONS, Epdc
from plhwtools.drivers.pbtn import (
    PBTN_5,
    PBTN_7,
    PBTN_9,
    PBTN_ALL,
    REG_CONFIG,
    PushButtons,
    button_names,
)
from plhwtools.exceptions import AbortedError, InvalidParameterError, TimeoutError
from plhwtools.utils.polling import AbortToken

from conftest import ButtonChip, RegisterChip


class TestPushButtons:
    def test_button_names(self):
        assert button_names(PBTN_5 | PBTN_9) == ["#5", "#9"]

    def test_read_configures_inputs_once(self, fake_bus):
        chip = fake_bus.attach(0x20, ButtonChip([PBTN_7]))
        pbtn = PushButtons(fake_bus)
        assert pbtn.read() == PBTN_7
        pbtn.read()
        assert chip.regs[REG_CONFIG] == PBTN_ALL
        assert len(fake_bus.writes_to(0x20)) == 1

    def test_wait_pressed_then_released(self, fake_bus):
        fake_bus.attach(0x20, ButtonChip([0, 0, PBTN_5, PBTN_5, 0]))
        pbtn = PushButtons(fake_bus)
        assert pbtn.wait(PBTN_5, True, timeout_s=1.0, poll_s=0) == PBTN_5
        assert pbtn.wait(PBTN_5, False, timeout_s=1.0, poll_s=0) == 0

    def test_wait_all_needs_every_button(self, fake_bus):
        fake_bus.attach(0x20, ButtonChip([PBTN_5, PBTN_ALL]))
        pbtn = PushButtons(fake_bus)
        assert pbtn.wait(PBTN_ALL, True, timeout_s=1.0, poll_s=0) == PBTN_ALL

    def test_wait_any_returns_matching_buttons(self, fake_bus):
        fake_bus.attach(0x20, ButtonChip([0, PBTN_7 | PBTN_9]))
        pbtn = PushButtons(fake_bus)
        assert pbtn.wait_any(PBTN_ALL, True, timeout_s=1.0, poll_s=0) == PBTN_7 | PBTN_9

    def test_wait_timeout(self, fake_bus):
        fake_bus.attach(0x20, ButtonChip([0]))
        pbtn = PushButtons(fake_bus, timeout_s=0.02)
        with pytest.raises(TimeoutError, match="#5 on"):
            pbtn.wait(PBTN_5, True, poll_s=0.005)

    def test_wait_abort(self, fake_bus):
        fake_bus.attach(0x20, ButtonChip([0]))
        abort = AbortToken()
        abort.request()
        with pytest.raises(AbortedError):
            PushButtons(fake_bus).wait(PBTN_5, True, abort=abort)

    @pytest.mark.parametrize("mask", [0, 0x20])
    def test_invalid_mask(self, fake_bus, mask):
        with pytest.raises(InvalidParameterError, match="button mask"):
            PushButtons(fake_bus).wait(mask, True)
        assert fake_bus.log == []


class TestEpdc:
    @pytest.fixture
    def chip(self, fake_bus):
        return fake_bus.attach(0x49, RegisterChip({0x10: 0x01, 0x11: 0xF4, 0x12: 0x01}))

    @pytest.fixture
    def epdc(self, fake_bus, chip):
        return Epdc(fake_bus)

    def test_get_options(self, epdc):
        assert epdc.get_hw_opt("power_off_delay_ms").value == 500
        assert epdc.get_hw_opt("clear_on_exit").value == 1

    def test_set_option_big_endian(self, epdc, chip, fake_bus):
        epdc.set_hw_opt("power_off_delay_ms", 0x1234)
        assert fake_bus.writes_to(0x49) == [b"\x10\x12\x34"]
        assert chip.regs[0x10:0x12] == b"\x12\x34"

    def test_unknown_option(self, epdc, fake_bus):
        with pytest.raises(InvalidParameterError, match="invalid hardware option identifier"):
            epdc.get_hw_opt("brightness")
        assert fake_bus.log == []

    def test_value_out_of_range(self, epdc, fake_bus):
        with pytest.raises(InvalidParameterError, match="clear_on_exit"):
            epdc.set_hw_opt("clear_on_exit", 2)
        assert fake_bus.writes_to(0x49) == []

    def test_option_table(self):
        assert set(EPDC_OPTIONS) == {"power_off_delay_ms", "clear_on_exit"}
