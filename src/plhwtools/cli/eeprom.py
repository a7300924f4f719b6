"""EEPROM self-test and file transfer CLI commands."""

from __future__ import annotations

from contextlib import contextmanager

import click

from plhwtools.cli.common import echo_json, get_run, handle_errors, wants_json
from plhwtools.exceptions import InvalidParameterError


@click.group()
def eeprom():
    """Read, write and test the display EEPROM.

    \b
    Sub-options are given with the global -o option as a comma-separated
    list of key=value or bare key tokens:
      i2c_block_size=N  maximum I2C transfer size in bytes (default 96)
      page_size=N       EEPROM write page size in bytes
      data_size=N       number of bytes to transfer
      skip=N            EEPROM offset to start from
      zero_padding      zero-fill the rest when the input file is short
      addr=ADDR         I2C address, as a number or a configured name
    """
    pass


def _prepare(ctx: click.Context, verb: str):
    from plhwtools.core.eeprom_transfer import EepromTransfer, parse_eeprom_options

    run = get_run(ctx)
    options = parse_eeprom_options(run.options, run.config)
    device = run.get_eeprom(options)

    def progress(percent: int, done: int) -> None:
        click.echo(f"\r{verb} EEPROM... {percent}% ({done})", nl=False, err=True)

    return EepromTransfer(device, options, abort=run.abort, on_progress=progress)


@contextmanager
def _open(path: str, mode: str):
    try:
        f = open(path, mode)
    except OSError as exc:
        raise InvalidParameterError(f"failed to open the file ({path}): {exc}") from exc
    with f:
        yield f


def _report(ctx: click.Context, result) -> None:
    click.echo(err=True)
    if wants_json(ctx):
        echo_json(result.model_dump())
    if result.aborted:
        ctx.exit(1)


@eeprom.command("full_rw")
@click.pass_context
@handle_errors
def full_rw(ctx: click.Context) -> None:
    """Write random data, read it back and compare."""
    transfer = _prepare(ctx, "Testing")

    click.echo("Warning: this will overwrite the EEPROM data.\nContinue ? [N/y] ",
               nl=False, err=True)
    answer = click.getchar()
    click.echo(err=True)
    if answer != "y":
        click.echo("aborted", err=True)
        ctx.exit(1)

    result = transfer.self_test()
    if wants_json(ctx):
        echo_json(result.model_dump(exclude={"written", "read"}))
    if not result.passed:
        ctx.exit(1)
    click.echo("All good.", err=True)


@eeprom.command("e2f")
@click.argument("file_name", required=False, type=click.Path(dir_okay=False))
@click.pass_context
@handle_errors
def e2f(ctx: click.Context, file_name: str | None) -> None:
    """Dump EEPROM contents to FILE_NAME, or stdout by default.

    The file is made read-only once written.
    """
    from plhwtools.core.eeprom_transfer import make_read_only

    transfer = _prepare(ctx, "Reading")
    if file_name is None:
        result = transfer.export_to(click.get_binary_stream("stdout"))
    else:
        with _open(file_name, "wb") as f:
            result = transfer.export_to(f)
        make_read_only(file_name)
    _report(ctx, result)


@eeprom.command("f2e")
@click.argument("file_name", required=False, type=click.Path(dir_okay=False))
@click.pass_context
@handle_errors
def f2e(ctx: click.Context, file_name: str | None) -> None:
    """Write FILE_NAME contents, or stdin by default, to the EEPROM."""
    transfer = _prepare(ctx, "Writing")
    if file_name is None:
        result = transfer.import_from(click.get_binary_stream("stdin"))
    else:
        with _open(file_name, "rb") as f:
            result = transfer.import_from(f)
    _report(ctx, result)
