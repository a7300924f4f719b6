"""ePDC hardware option CLI commands."""

from __future__ import annotations

import click

from plhwtools.cli.common import echo_json, get_run, handle_errors, wants_json


@click.group()
def epdc():
    """Low-level access to the e-paper display controller (ePDC)."""
    pass


@epdc.command()
@click.argument("option")
@click.argument("value", required=False)
@click.pass_context
@handle_errors
def opt(ctx: click.Context, option: str, value: str | None) -> None:
    """Print hardware OPTION, or set it to the numerical VALUE.

    \b
    Options:
      power_off_delay_ms  delay between end of display update and HV power off
      clear_on_exit       clear the screen when the ePDC is shut down
    """
    from plhwtools.drivers.epdc import get_option
    from plhwtools.utils.parsing import parse_int

    get_option(option)
    device = get_run(ctx).epdc

    if value is not None:
        device.set_hw_opt(option, parse_int(value, option))
        return

    current = device.get_hw_opt(option)
    if wants_json(ctx):
        echo_json(current.model_dump())
    else:
        click.echo(current.value)
