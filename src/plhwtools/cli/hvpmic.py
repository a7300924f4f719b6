"""MAX17135 HV PMIC CLI commands."""

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
from plhwtools.drivers.max17135 import MAX17135_SWITCHES
from plhwtools.drivers.pmic import PmicVariant
from plhwtools.utils.parsing import on_off, parse_int, parse_on_off


def _pmic(ctx: click.Context):
    return require_pmic(get_run(ctx), PmicVariant.MAX17135)


def _is_number(value: str) -> bool:
    try:
        int(value.strip(), 0)
    except ValueError:
        return False
    return True


@click.group(invoke_without_command=True)
@click.pass_context
@handle_errors
def hvpmic(ctx: click.Context) -> None:
    """Control the MAX17135 HV PMIC (timings, VCOM, switches).

    With no sub-command all the HV PMIC status information is dumped.
    """
    if ctx.invoked_subcommand is not None:
        return

    state = _pmic(ctx).get_state()
    if wants_json(ctx):
        echo_json(state.model_dump(mode="json"))
        return

    click.echo(f"HV PMIC id: 0x{state.prod_id:02X}, rev: 0x{state.prod_rev:02X}")
    for name, on in state.switches.items():
        click.echo(f"{name.upper()} status: {on_off(on)}")
    for i, ms in enumerate(state.timings):
        click.echo(f"timing #{i}: {ms:3d} ms")
    click.echo(f"VCOM: {state.vcom} (0x{state.vcom:02X})")
    click.echo(f"fault: {state.fault.name}")
    temp = state.temperature
    click.echo(f"temperature sensor enabled: {'yes' if temp.sensor_enabled else 'no'}")
    click.echo(f"internal temperature: {temp.internal_celsius:.1f} C")
    click.echo(f"external temperature: {temp.external_celsius:.1f} C")


@hvpmic.command()
@click.argument("number")
@click.argument("value_ms")
@click.pass_context
@handle_errors
def timing(ctx: click.Context, number: str, value_ms: str) -> None:
    """Set timing NUMBER (0-7) to VALUE_MS (0-255)."""
    index = parse_int(number, "timing number")
    value = parse_int(value_ms, "timing value")
    _pmic(ctx).set_timing(index, value)


@hvpmic.command()
@click.argument("values", nargs=-1)
@click.pass_context
@handle_errors
def timings(ctx: click.Context, values: tuple[str, ...]) -> None:
    """Show all timings, or set them.

    VALUES is either a power sequence name (for example seq0), whose
    timing table is then written, or up to 8 timing values in ms.
    """
    from plhwtools.core.power_sequence import get_power_sequence, push_sequence_timings

    pmic = _pmic(ctx)

    if not values:
        current = pmic.get_timings()
        if wants_json(ctx):
            echo_json(current)
        else:
            for i, ms in enumerate(current):
                click.echo(f"{i}: {ms}")
        return

    if len(values) == 1 and not _is_number(values[0]):
        push_sequence_timings(pmic, get_power_sequence(values[0]))
        return

    pmic.set_timings([parse_int(v, "timing") for v in values])


@hvpmic.command()
@click.argument("value", required=False)
@click.pass_context
@handle_errors
def vcom(ctx: click.Context, value: str | None) -> None:
    """Show the VCOM register, or set it to VALUE (0-255)."""
    pmic = _pmic(ctx)
    if value is None:
        raw = pmic.get_vcom()
        click.echo(f"{raw} (0x{raw:02X})")
        return
    pmic.set_vcom(parse_int(value, "VCOM value"))


@hvpmic.command()
@click.pass_context
@handle_errors
def fault(ctx: click.Context) -> None:
    """Show the current fault."""
    code = _pmic(ctx).get_fault()
    if wants_json(ctx):
        echo_json({"fault": code.name, "code": int(code)})
    else:
        click.echo(f"HV PMIC fault: {code.name}")


@hvpmic.command("temp-sensor")
@click.argument("state", required=False)
@click.pass_context
@handle_errors
def temp_sensor(ctx: click.Context, state: str | None) -> None:
    """Report the temperature sensor state, or set it to STATE (on/off)."""
    pmic = _pmic(ctx)
    if state is None:
        click.echo(on_off(pmic.get_temp_sensor_enabled()))
        return
    pmic.set_temp_sensor_enabled(parse_on_off(state))


add_switch_commands(
    hvpmic, MAX17135_SWITCHES, lambda run: require_pmic(run, PmicVariant.MAX17135)
)
