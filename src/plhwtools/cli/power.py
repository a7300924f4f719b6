"""Full power on / off sequence across the CPLD, PMIC and DAC."""

from __future__ import annotations

import click

from plhwtools.cli.common import echo_json, get_run, handle_errors, wants_json
from plhwtools.models.power import PowerDirection


@click.command()
@click.argument("direction", type=click.Choice([d.value for d in PowerDirection]))
@click.argument("sequence", required=False)
@click.argument("vcom", required=False)
@click.pass_context
@handle_errors
def power(
    ctx: click.Context, direction: str, sequence: str | None, vcom: str | None
) -> None:
    """Run a full power on or off sequence using multiple devices.

    \b
      on [SEQUENCE] [VCOM]  power on with the named sequence (seq0 by
                            default) and DAC VCOM value (0-255, 128 by
                            default)
      off [SEQUENCE]        power off

    The default address of each device is always used.
    """
    from plhwtools.core.power_sequence import run_power
    from plhwtools.exceptions import InvalidParameterError
    from plhwtools.utils.parsing import parse_int

    run = get_run(ctx)
    power_dir = PowerDirection(direction)
    if vcom is not None and power_dir == PowerDirection.OFF:
        raise InvalidParameterError("VCOM only applies to power on")
    vcom_value = None if vcom is None else parse_int(vcom, "VCOM value")

    run.use_default_addresses()
    report = run_power(run, power_dir, sequence, vcom_value)

    if wants_json(ctx):
        echo_json(report.model_dump(mode="json"))
    if not report.ok:
        failed = report.failed_step
        click.echo(f"Power {direction} failed at step {failed.index} ({failed.name})", err=True)
        ctx.exit(1)
    click.echo(f"Power {direction}", err=True)
