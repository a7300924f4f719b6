"""Helpers shared by the per-device command modules."""

from __future__ import annotations

import functools
import json
from typing import Any, Callable

import click

from plhwtools.exceptions import InvalidParameterError, PlhwError
from plhwtools.utils.logging import get_logger
from plhwtools.utils.parsing import on_off

logger = get_logger(__name__)


def get_run(ctx: click.Context):
    """Return the RunContext built by the top-level group."""
    return ctx.obj["run"]


def wants_json(ctx: click.Context) -> bool:
    return bool(ctx.obj.get("json_output"))


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


def handle_errors(func: Callable) -> Callable:
    """Turn a PlhwError into a ``command_failed`` log and exit status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PlhwError as exc:
            logger.error(
                "command_failed",
                command=click.get_current_context().command_path,
                kind=str(exc.kind),
                error=str(exc),
            )
            click.get_current_context().exit(1)

    return wrapper


def _switch_command(name: str, table, get_device: Callable) -> click.Command:
    @click.command(name=name)
    @click.argument("state", required=False)
    @click.pass_context
    @handle_errors
    def command(ctx: click.Context, state: str | None) -> None:
        from plhwtools.drivers.switches import switch_on_off

        on = switch_on_off(table, get_device(get_run(ctx)), name, state)
        if wants_json(ctx):
            echo_json({"switch": name, "state": on_off(on)})
        elif state is None:
            click.echo(f"{name}: {on_off(on)}")

    command.help = f"Report the {name} switch, or set it to STATE (on/off)."
    return command


def add_switch_commands(group: click.Group, table, get_device: Callable) -> None:
    """Add one ``NAME [on|off]`` sub-command per entry of *table*."""
    for entry in table:
        group.add_command(_switch_command(entry.name, table, get_device))


def require_pmic(run, variant):
    """Return the PMIC driver, checking the configured variant first."""
    if run.config.pmic != variant:
        raise InvalidParameterError(
            f"this board is configured with a {run.config.pmic} PMIC, "
            f"use the {run.config.pmic} command"
        )
    return run.pmic
