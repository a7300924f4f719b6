"""Push button test procedure."""

from __future__ import annotations

import click

from plhwtools.cli.common import get_run, handle_errors
from plhwtools.utils.logging import get_logger

logger = get_logger(__name__)


@click.command()
@click.pass_context
@handle_errors
def pbtn(ctx: click.Context) -> None:
    """Small procedure to manually test the push buttons.

    Each step waits for a button action; a step that times out is
    reported and the procedure moves on.  Ctrl-C aborts it.
    """
    from plhwtools.drivers.pbtn import PBTN_7, PBTN_9, PBTN_ALL, button_names
    from plhwtools.exceptions import TimeoutError

    run = get_run(ctx)
    buttons = run.pbtn
    steps = [
        ("waiting for button #7 on", lambda: buttons.wait(PBTN_7, True, abort=run.abort)),
        ("waiting for button #7 off", lambda: buttons.wait(PBTN_7, False, abort=run.abort)),
        ("waiting for button #9 on", lambda: buttons.wait(PBTN_9, True, abort=run.abort)),
        ("please release all buttons now", lambda: buttons.wait(PBTN_ALL, False, abort=run.abort)),
        ("waiting for any button on", lambda: buttons.wait_any(PBTN_ALL, True, abort=run.abort)),
    ]

    click.echo("Type Ctrl-C to abort", err=True)
    failed = 0
    for prompt, wait in steps:
        click.echo(prompt, err=True)
        try:
            state = wait()
        except TimeoutError as exc:
            logger.warning("pbtn_step_timeout", step=prompt, error=str(exc))
            failed += 1
            continue
        click.echo(f"result: 0x{state:02X} {' '.join(button_names(state))}".rstrip())

    if failed:
        logger.error("pbtn_procedure_failed", failed_steps=failed)
        ctx.exit(1)
