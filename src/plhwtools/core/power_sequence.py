"""Ordered, fault-checked power on / power off of the display rails.

A sequence is a flat list of steps run in order.  The first step that
raises a PlhwError stops the run: later steps are never attempted and
nothing is rolled back, so the hardware may be left partially
sequenced.  The outcome comes back as a SequenceReport.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from plhwtools.drivers.cpld import CpldSwitch
from plhwtools.drivers.max5820 import DacChannel, DacPower
from plhwtools.drivers.max17135 import Max17135
from plhwtools.drivers.pmic import HvPmic
from plhwtools.exceptions import InvalidParameterError, PlhwError, check_range
from plhwtools.models.power import PowerDirection, SequenceReport, StepOutcome
from plhwtools.utils.logging import get_logger

if TYPE_CHECKING:
    from plhwtools.context import RunContext

logger = get_logger(__name__)

DEFAULT_VCOM = 128
VCOM_DAC_MAX = 0xFF
VCOM_DAC_CHANNEL = DacChannel.A


@dataclass(frozen=True)
class PowerStep:
    """One named action of a power sequence."""
    name: str
    action: Callable[[], None]


@dataclass(frozen=True)
class PowerSequence:
    """Named sequence: MAX17135 timing table plus on and off procedures."""
    name: str
    timings: tuple[int, ...]
    on: Callable[[RunContext, int], list[PowerStep]]
    off: Callable[[RunContext], list[PowerStep]]


def run_power_steps(
    sequence: str, direction: PowerDirection, steps: list[PowerStep]
) -> SequenceReport:
    """Run *steps* in order, stopping at the first failure."""
    report = SequenceReport(
        sequence=sequence, direction=direction, total_steps=len(steps)
    )
    for index, step in enumerate(steps, start=1):
        try:
            step.action()
        except PlhwError as exc:
            logger.error(
                "power_step_failed",
                sequence=sequence,
                direction=str(direction),
                index=index,
                step=step.name,
                kind=str(exc.kind),
                error=str(exc),
            )
            report.steps.append(
                StepOutcome(index=index, name=step.name, ok=False, error=str(exc))
            )
            return report
        logger.info("power_step_ok", direction=str(direction), index=index, step=step.name)
        report.steps.append(StepOutcome(index=index, name=step.name, ok=True))
    return report


def _cpld_switch(ctx: RunContext, switch: CpldSwitch, on: bool) -> Callable[[], None]:
    return lambda: ctx.cpld.set_switch(switch, on)


def seq0_on_steps(ctx: RunContext, vcom: int) -> list[PowerStep]:
    def wait_pok() -> None:
        ctx.pmic.wait_for_pok(timeout_s=ctx.config.pok_timeout_s, abort=ctx.abort)

    return [
        PowerStep("bpcom_clamp_on", _cpld_switch(ctx, CpldSwitch.BPCOM_CLAMP, True)),
        PowerStep("hv_on", _cpld_switch(ctx, CpldSwitch.HVEN, True)),
        PowerStep("wait_pok", wait_pok),
        PowerStep("vcom_open", _cpld_switch(ctx, CpldSwitch.COM_SW_CLOSE, False)),
        PowerStep("vcom_switch_enable", _cpld_switch(ctx, CpldSwitch.COM_SW_EN, True)),
        PowerStep("vcom_psu_on", _cpld_switch(ctx, CpldSwitch.COM_PSU, True)),
        PowerStep("dac_vcom", lambda: ctx.dac.output(VCOM_DAC_CHANNEL, vcom)),
        PowerStep("dac_on", lambda: ctx.dac.set_power(VCOM_DAC_CHANNEL, DacPower.ON)),
        PowerStep("vcom_close", _cpld_switch(ctx, CpldSwitch.COM_SW_CLOSE, True)),
    ]


def seq0_off_steps(ctx: RunContext) -> list[PowerStep]:
    return [
        PowerStep("vcom_open", _cpld_switch(ctx, CpldSwitch.COM_SW_CLOSE, False)),
        PowerStep("vcom_switch_disable", _cpld_switch(ctx, CpldSwitch.COM_SW_EN, False)),
        PowerStep(
            "dac_off", lambda: ctx.dac.set_power(VCOM_DAC_CHANNEL, DacPower.OFF_100K)
        ),
        PowerStep("vcom_psu_off", _cpld_switch(ctx, CpldSwitch.COM_PSU, False)),
        PowerStep("hv_off", _cpld_switch(ctx, CpldSwitch.HVEN, False)),
    ]


POWER_SEQUENCES: tuple[PowerSequence, ...] = (
    PowerSequence(
        name="seq0",
        timings=(8, 2, 11, 3, 0, 0, 0, 0),
        on=seq0_on_steps,
        off=seq0_off_steps,
    ),
)


def get_power_sequence(name: str | None = None) -> PowerSequence:
    """Look up a sequence by name; no name selects the first one."""
    if not name:
        return POWER_SEQUENCES[0]
    for sequence in POWER_SEQUENCES:
        if sequence.name == name:
            return sequence
    raise InvalidParameterError(
        f"invalid sequence name: {name} "
        f"(valid: {', '.join(s.name for s in POWER_SEQUENCES)})"
    )


def push_sequence_timings(pmic: HvPmic, sequence: PowerSequence) -> None:
    """Write the timing table of *sequence* to a MAX17135."""
    if not isinstance(pmic, Max17135):
        raise InvalidParameterError(
            f"timing tables need a MAX17135, configured PMIC is {pmic.NAME}"
        )
    logger.info("sequence_timings_push", sequence=sequence.name, timings=list(sequence.timings))
    pmic.set_timings(list(sequence.timings))


def run_power(
    ctx: RunContext,
    direction: PowerDirection,
    name: str | None = None,
    vcom: int | None = None,
) -> SequenceReport:
    """Run the on or off procedure of a named sequence.

    The sequence name and VCOM value are validated before the first step.
    """
    direction = PowerDirection(direction)
    sequence = get_power_sequence(name)

    if direction == PowerDirection.ON:
        vcom = DEFAULT_VCOM if vcom is None else vcom
        check_range(vcom, 0, VCOM_DAC_MAX, "VCOM value")
        steps = sequence.on(ctx, vcom)
    else:
        steps = sequence.off(ctx)

    logger.info(
        "power_sequence_start",
        sequence=sequence.name,
        direction=str(direction),
        steps=len(steps),
        vcom=vcom,
    )
    report = run_power_steps(sequence.name, direction, steps)
    if report.ok:
        logger.info("power_sequence_done", sequence=sequence.name, direction=str(direction))
    return report
