"""MAX5820 DAC CLI command."""

from __future__ import annotations

import click

from plhwtools.cli.common import get_run, handle_errors


@click.command()
@click.argument("channel")
@click.argument("value")
@click.pass_context
@handle_errors
def dac(ctx: click.Context, channel: str, value: str) -> None:
    """Control DAC power and output value.

    CHANNEL is A or B.  VALUE is one of:

    \b
      on       turn the power on
      off      turn the power off and let the output float
      off1k    turn the power off and pull the output to GND with 1K
      off100k  turn the power off and pull the output to GND with 100K
      0-255    set the output of the channel
    """
    from plhwtools.drivers.max5820 import DAC_POWER_NAMES, parse_channel
    from plhwtools.utils.parsing import parse_int

    ch = parse_channel(channel)
    power = DAC_POWER_NAMES.get(value)
    if power is not None:
        get_run(ctx).dac.set_power(ch, power)
    else:
        get_run(ctx).dac.output(ch, parse_int(value, "DAC value"))
