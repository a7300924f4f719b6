"""CPLD CLI commands."""

from __future__ import annotations

import click

from plhwtools.cli.common import (
    add_switch_commands,
    echo_json,
    get_run,
    handle_errors,
    wants_json,
)
from plhwtools.drivers.cpld import CPLD_SWITCHES


@click.group(invoke_without_command=True)
@click.pass_context
@handle_errors
def cpld(ctx: click.Context) -> None:
    """Control the CPLD over its I2C register interface.

    With no sub-command the firmware version, board id and raw register
    image are shown.  Each switch sub-command reports the switch state,
    or sets it when given on/off.
    """
    if ctx.invoked_subcommand is not None:
        return

    info = get_run(ctx).cpld.get_info()
    if wants_json(ctx):
        echo_json(info.model_dump())
    else:
        click.echo(f"CPLD v{info.version}, board id: {info.board_id}")
        click.echo(f"CPLD data: [{info.hex_dump}]")


@cpld.command()
@click.pass_context
@handle_errors
def version(ctx: click.Context) -> None:
    """Print the CPLD version number (plain decimal)."""
    click.echo(get_run(ctx).cpld.get_version())


add_switch_commands(cpld, CPLD_SWITCHES, lambda run: run.cpld)
