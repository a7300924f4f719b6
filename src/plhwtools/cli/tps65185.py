"""TPS65185 PMIC CLI commands."""

from __future__ import annotations

import click

from plhwtools.cli.common import (
    add_switch_commands,
    echo_json,
    get_run,
    handle_errors,
    require_pmic,
    wants_json,
)
from plhwtools.drivers.pmic import PmicVariant
from plhwtools.drivers.tps65185 import TPS65185_SWITCHES
from plhwtools.models.pmic import PowerMode, SequenceDirection, SequenceTiming
from plhwtools.utils.parsing import on_off, parse_int, parse_int_list


def _pmic(ctx: click.Context):
    return require_pmic(get_run(ctx), PmicVariant.TPS65185)


def _format_sequence(timing: SequenceTiming) -> str:
    strobes = " ".join(f"{rail}={slot}" for rail, slot in timing.strobes.items())
    delays = ",".join(str(d) for d in timing.delays_ms)
    return f"strobes: {strobes}, delays: {delays} ms"


@click.group(invoke_without_command=True)
@click.pass_context
@handle_errors
def tps65185(ctx: click.Context) -> None:
    """Control the TPS65185 PMIC (rails, VCOM, sequencing, power mode).

    With no sub-command the full PMIC status is dumped.
    """
    if ctx.invoked_subcommand is not None:
        return

    state = _pmic(ctx).get_state()
    if wants_json(ctx):
        echo_json(state.model_dump(mode="json"))
        return

    click.echo(f"TPS65185 revision: 0x{state.revision:02X}")
    for name, on in state.switches.items():
        click.echo(f"{name}: {on_off(on)}")
    click.echo(f"VCOM: {state.vcom} (0x{state.vcom:03X}, {state.vcom_volts:.2f} V)")
    click.echo(f"power mode: {state.power_mode}, power good: {'yes' if state.power_good else 'no'}")
    click.echo(f"fault: {state.fault.name}")
    click.echo(f"up sequence: {_format_sequence(state.up_sequence)}")
    click.echo(f"down sequence: {_format_sequence(state.down_sequence)}")
    click.echo(f"temperature: {state.temperature.external_celsius:.1f} C")


@tps65185.command()
@click.argument("value", required=False)
@click.pass_context
@handle_errors
def vcom(ctx: click.Context, value: str | None) -> None:
    """Show the VCOM register, or set it to VALUE (0-511, 10 mV steps)."""
    pmic = _pmic(ctx)
    if value is None:
        raw = pmic.get_vcom()
        click.echo(f"{raw} (0x{raw:03X}, {-raw * 0.01:.2f} V)")
        return
    pmic.set_vcom(parse_int(value, "VCOM value"))


@tps65185.command()
@click.pass_context
@handle_errors
def fault(ctx: click.Context) -> None:
    """Show the current fault (reading clears the interrupt flags)."""
    code = _pmic(ctx).get_fault()
    if wants_json(ctx):
        echo_json({"fault": code.name, "code": int(code)})
    else:
        click.echo(f"TPS65185 fault: {code.name}")


@tps65185.command()
@click.argument("direction", type=click.Choice([d.value for d in SequenceDirection]))
@click.argument("strobes", required=False)
@click.argument("delays", required=False)
@click.pass_context
@handle_errors
def sequence(
    ctx: click.Context, direction: str, strobes: str | None, delays: str | None
) -> None:
    """Show or set the power-up or power-down sequence.

    STROBES gives the strobe slot (1-4) of VDDH, VPOS, VEE and VNEG, for
    example 1,2,3,4.  DELAYS gives the delay of each strobe slot in ms
    (3, 6, 9 or 12), for example 3,3,3,3.
    """
    from plhwtools.drivers.tps65185 import make_sequence_timing
    from plhwtools.exceptions import InvalidParameterError

    pmic = _pmic(ctx)
    seq_dir = SequenceDirection(direction)

    if strobes is None:
        timing = pmic.get_sequence(seq_dir)
        if wants_json(ctx):
            echo_json(timing.model_dump(mode="json"))
        else:
            click.echo(_format_sequence(timing))
        return

    if delays is None:
        raise InvalidParameterError("both STROBES and DELAYS are needed to set a sequence")
    timing = make_sequence_timing(
        parse_int_list(strobes, "strobe"), parse_int_list(delays, "delay")
    )
    pmic.set_sequence(seq_dir, timing)


@tps65185.command()
@click.argument("mode", required=False, type=click.Choice([m.value for m in PowerMode]))
@click.pass_context
@handle_errors
def mode(ctx: click.Context, mode: str | None) -> None:
    """Show the power mode, or switch to MODE and wait for power good."""
    run = get_run(ctx)
    pmic = _pmic(ctx)
    if mode is None:
        click.echo(pmic.get_power_mode())
        return
    pmic.set_power_mode(PowerMode(mode), timeout_s=run.config.pok_timeout_s, abort=run.abort)


@tps65185.command()
@click.pass_context
@handle_errors
def temp(ctx: click.Context) -> None:
    """Trigger a thermistor conversion and show the temperature."""
    reading = _pmic(ctx).get_temperature(abort=get_run(ctx).abort)
    click.echo(f"{reading.external_celsius:.1f}")


add_switch_commands(
    tps65185, TPS65185_SWITCHES, lambda run: require_pmic(run, PmicVariant.TPS65185)
)
