"""plhwtools CLI - command-line interface for e-paper display hardware."""

from __future__ import annotations

import signal

import click

from plhwtools import APP_NAME, COPYRIGHT, DESCRIPTION, LICENSE, __version__
from plhwtools.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _parse_address(ctx: click.Context, param: click.Parameter, value: str | None) -> int | None:
    """Parse the -a option as hex, like ``48`` or ``0x48``."""
    if value is None:
        return None
    try:
        address = int(value, 16)
    except ValueError:
        raise click.BadParameter(f"invalid I2C address: {value!r} (use hex like 0x48)") from None
    if not 0 <= address <= 0x7F:
        raise click.BadParameter(f"I2C address 0x{address:X} is not a 7-bit address")
    return address


def _install_sigint(abort):
    """Route Ctrl-C to the abort token; returns the previous handler."""

    def handler(signum, frame):
        logger.warning("abort_requested")
        abort.request()

    try:
        return signal.signal(signal.SIGINT, handler)
    except ValueError:
        # signal handlers can only be installed from the main thread
        logger.warning("sigint_handler_not_installed")
        return None


@click.group()
@click.version_option(
    __version__, "-v", "--version",
    prog_name=APP_NAME,
    message=f"%(prog)s v%(version)s - {DESCRIPTION}\n{COPYRIGHT}\n{LICENSE}",
)
@click.option("-b", "--bus", "bus_path", default=None,
              help="I2C bus device, typically /dev/i2c-X")
@click.option("-a", "--address", default=None, callback=_parse_address,
              help="I2C address (hex) of the device, for single-device commands")
@click.option("-o", "--options", default=None,
              help="Optional argument string used by the command")
@click.option("--config", "config_path", default=None,
              type=click.Path(dir_okay=False), help="Configuration file (JSON)")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.pass_context
def cli(
    ctx: click.Context,
    bus_path: str | None,
    address: int | None,
    options: str | None,
    config_path: str | None,
    debug: bool,
    json_output: bool,
) -> None:
    """plhwtools - e-paper display hardware diagnostic and control tools."""
    from plhwtools.config import load_config
    from plhwtools.context import RunContext
    from plhwtools.exceptions import ConfigError
    from plhwtools.transport.bus import I2cBus

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["json_output"] = json_output
    setup_logging(level="DEBUG" if debug else "INFO", json_output=json_output)

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        logger.error("command_failed", kind=str(exc.kind), error=str(exc))
        ctx.exit(1)

    run = RunContext(
        config=config,
        bus_path=bus_path,
        address=address,
        options=options,
        bus_factory=ctx.obj.get("bus_factory") or I2cBus,
    )
    ctx.obj["run"] = run
    previous = _install_sigint(run.abort)

    def cleanup() -> None:
        run.close()
        if previous is not None:
            try:
                signal.signal(signal.SIGINT, previous)
            except (ValueError, OSError) as exc:
                logger.warning("sigint_restore_failed", error=str(exc))

    ctx.call_on_close(cleanup)


@cli.command("help")
@click.argument("command", required=False)
@click.pass_context
def help_command(ctx: click.Context, command: str | None) -> None:
    """Show the help of the tool, or only of COMMAND."""
    parent = ctx.parent
    if command is None:
        click.echo(parent.get_help())
        return

    sub = parent.command.get_command(parent, command)
    if sub is None:
        logger.error("command_failed", error=f"unknown command: {command}")
        click.echo(parent.get_help())
        ctx.exit(1)
    with click.Context(sub, info_name=command, parent=parent) as sub_ctx:
        click.echo(sub.get_help(sub_ctx))


# Register device commands
from plhwtools.cli.adc import adc  # noqa: E402
from plhwtools.cli.cpld import cpld  # noqa: E402
from plhwtools.cli.dac import dac  # noqa: E402
from plhwtools.cli.eeprom import eeprom  # noqa: E402
from plhwtools.cli.epdc import epdc  # noqa: E402
from plhwtools.cli.hvpmic import hvpmic  # noqa: E402
from plhwtools.cli.pbtn import pbtn  # noqa: E402
from plhwtools.cli.power import power  # noqa: E402
from plhwtools.cli.tps65185 import tps65185  # noqa: E402

cli.add_command(cpld)
cli.add_command(hvpmic)
cli.add_command(tps65185)
cli.add_command(dac)
cli.add_command(adc)
cli.add_command(pbtn)
cli.add_command(eeprom)
cli.add_command(power)
cli.add_command(epdc)


if __name__ == "__main__":
    cli()
