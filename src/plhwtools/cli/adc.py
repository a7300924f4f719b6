"""MAX11607 ADC CLI command."""

from __future__ import annotations

import click

from plhwtools.cli.common import echo_json, get_run, handle_errors, wants_json
from plhwtools.drivers.max11607 import AdcReference


@click.command()
@click.argument(
    "reference",
    required=False,
    default=AdcReference.INTERNAL.value,
    type=click.Choice([r.value for r in AdcReference]),
)
@click.argument("channel", required=False)
@click.pass_context
@handle_errors
def adc(ctx: click.Context, reference: str, channel: str | None) -> None:
    """Read ADC values.

    With no CHANNEL all channels are converted and shown.  CHANNEL is a
    channel number starting from 0, or ``vcom`` for the VCOM value on
    its dedicated channel; a plain voltage is then printed on stdout.
    """
    from plhwtools.utils.parsing import parse_int

    run = get_run(ctx)
    adc_dev = run.adc
    adc_dev.set_ref(AdcReference(reference))
    adc_dev.read_results()

    if channel == "vcom":
        click.echo(f"{adc_dev.get_vcom_volts():f}")
        return

    if channel is not None:
        reading = adc_dev.reading(parse_int(channel, "channel number"))
        click.echo(f"{reading.volts:f}")
        return

    readings = [adc_dev.reading(ch) for ch in range(adc_dev.nb_channels)]
    if wants_json(ctx):
        echo_json([r.model_dump() for r in readings])
        return
    for r in readings:
        click.echo(f"ch. {r.channel}, result: {r.raw} ({r.volts:.3f} V, {r.millivolts} mV)")
