"""Bulk EEPROM transfers: self-test, export to a stream, import from one.

Data moves in chunks of at most BUFFER_SIZE bytes.  The abort token is
checked before every chunk; an abort ends the transfer cleanly at the
last completed chunk and is reported in the result, not raised.
"""

from __future__ import annotations

import os
import random
import stat
from pathlib import Path
from typing import BinaryIO, Callable

from plhwtools.config import PlhwConfig
from plhwtools.drivers.eeprom import Eeprom, get_model
from plhwtools.exceptions import InvalidParameterError
from plhwtools.models.eeprom import EepromTransferOptions, SelfTestResult, TransferResult
from plhwtools.utils.hexdump import log_hex_dump
from plhwtools.utils.logging import get_logger
from plhwtools.utils.parsing import parse_int
from plhwtools.utils.polling import AbortToken

logger = get_logger(__name__)

BUFFER_SIZE = 4096
DUMP_SIZE = 256
MISMATCH_LEAD = 128

_INT_OPTIONS = ("i2c_block_size", "page_size", "data_size", "skip")

ProgressCallback = Callable[[int, int], None]


def parse_eeprom_options(
    value: str | None, config: PlhwConfig | None = None
) -> EepromTransferOptions:
    """Parse a ``-o`` string such as ``i2c_block_size=32,skip=256,zero_padding``.

    A lone integer is accepted as the I2C block size.  ``addr`` takes an
    integer or a name from the configuration ``i2c_addresses`` table.

    Raises:
        InvalidParameterError: For unknown keys, missing or malformed
            values, or a ``skip`` + ``data_size`` span beyond the EEPROM.
    """
    config = config or PlhwConfig()
    fields: dict[str, object] = {}

    for token in (t.strip() for t in (value or "").split(",")):
        if not token:
            continue
        key, sep, raw = token.partition("=")
        key, raw = key.strip(), raw.strip()

        if not sep and key.isdigit():
            fields["i2c_block_size"] = int(key)
        elif key == "zero_padding":
            if sep and raw not in ("0", "1"):
                raise InvalidParameterError(f"invalid zero_padding value: {raw!r}")
            fields["zero_padding"] = not sep or raw == "1"
        elif key in _INT_OPTIONS:
            if not raw:
                raise InvalidParameterError(f"missing value for option {key}")
            fields[key] = parse_int(raw, key)
        elif key == "addr":
            if not raw:
                raise InvalidParameterError("missing value for option addr")
            try:
                fields["address"] = int(raw, 0)
            except ValueError:
                fields["address"] = config.lookup_address(raw)
        else:
            raise InvalidParameterError(f"unknown EEPROM option: {key}")

    for key in ("i2c_block_size", "page_size", "data_size"):
        if key in fields and fields[key] <= 0:
            raise InvalidParameterError(f"invalid {key} {fields[key]} (must be > 0)")
    if fields.get("skip", 0) < 0:
        raise InvalidParameterError(f"invalid skip {fields['skip']} (must be >= 0)")
    if "address" in fields and not 0 <= fields["address"] <= 0x7F:
        raise InvalidParameterError(f"invalid EEPROM I2C address {fields['address']}")

    options = EepromTransferOptions(**fields)

    size = get_model(config.eeprom_model).size
    span = options.skip + (options.data_size or 0)
    if options.skip >= size or span > size:
        raise InvalidParameterError(
            f"skip ({options.skip}) + data_size ({options.data_size or 0}) "
            f"beyond EEPROM size ({size})"
        )
    return options


def progress_percent(data_size: int, remaining: int) -> int:
    return (data_size - remaining) * 100 // data_size


def make_read_only(path: str | Path) -> None:
    """chmod 0444; a failure is only worth a warning."""
    try:
        os.chmod(path, stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH)
    except OSError as exc:
        logger.warning("chmod_failed", path=str(path), error=str(exc))


class EepromTransfer:
    """Move data between an EEPROM and a byte stream.

    Args:
        eeprom: Target device, already configured with block and page size.
        options: Parsed transfer options.
        abort: Token polled once per chunk.
        on_progress: Called after every chunk with (percent, done bytes).
    """

    def __init__(
        self,
        eeprom: Eeprom,
        options: EepromTransferOptions | None = None,
        abort: AbortToken | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        self._eeprom = eeprom
        self._options = options or EepromTransferOptions()
        self._abort = abort or AbortToken()
        self._on_progress = on_progress

    @property
    def skip(self) -> int:
        return self._options.skip

    @property
    def data_size(self) -> int:
        if self._options.data_size is not None:
            return self._options.data_size
        return self._eeprom.size - self._options.skip

    def _check_span(self, start: int, size: int) -> None:
        if start + size > self._eeprom.size:
            raise InvalidParameterError(
                f"skip ({start}) + data_size ({size}) beyond EEPROM size ({self._eeprom.size})"
            )

    def _progress(self, done: int) -> None:
        if self._on_progress is not None:
            self._on_progress(progress_percent(self.data_size, self.data_size - done), done)

    # --- Self-test ---

    def self_test(self, rng: random.Random | None = None) -> SelfTestResult:
        """Write random data from offset 0, read it back and compare.

        ``skip`` does not apply: without ``data_size`` the whole device is
        tested.
        """
        size = self._options.data_size or self._eeprom.size
        self._check_span(0, size)
        rng = rng or random.Random()

        logger.info(
            "eeprom_self_test_start",
            size=size,
            block_size=self._eeprom.block_size,
            page_size=self._eeprom.page_size,
        )
        written = rng.randbytes(size)
        log_hex_dump(logger, "eeprom_written_head", written[:DUMP_SIZE])

        self._eeprom.seek(0)
        self._eeprom.write(written)
        self._eeprom.seek(0)
        read = self._eeprom.read(size)
        log_hex_dump(logger, "eeprom_read_head", read[:DUMP_SIZE])

        for offset, (w, r) in enumerate(zip(written, read)):
            if w != r:
                start = max(0, offset - MISMATCH_LEAD)
                end = min(size, start + DUMP_SIZE)
                logger.error(
                    "eeprom_self_test_mismatch",
                    offset=f"0x{offset:04X}",
                    dump_start=f"0x{start:04X}",
                    written=f"0x{w:02X}",
                    read=f"0x{r:02X}",
                )
                log_hex_dump(logger, "eeprom_mismatch_written", written[start:end], start)
                log_hex_dump(logger, "eeprom_mismatch_read", read[start:end], start)
                return SelfTestResult(
                    data_size=size,
                    passed=False,
                    mismatch_offset=offset,
                    dump_offset=start,
                    written=written[start:end],
                    read=read[start:end],
                )

        logger.info("eeprom_self_test_passed", size=size)
        return SelfTestResult(data_size=size, passed=True)

    # --- Export / import ---

    def export_to(self, sink: BinaryIO) -> TransferResult:
        """Copy ``data_size`` bytes from ``skip`` to *sink*."""
        size, skip = self.data_size, self.skip
        self._check_span(skip, size)
        result = TransferResult(data_size=size, skip=skip)

        self._eeprom.seek(skip)
        remaining = size
        while remaining:
            if self._abort.requested:
                result.aborted = True
                logger.warning("eeprom_transfer_aborted", done=result.transferred)
                break
            chunk = self._eeprom.read(min(BUFFER_SIZE, remaining))
            sink.write(chunk)
            remaining -= len(chunk)
            result.transferred += len(chunk)
            self._progress(result.transferred)
        sink.flush()

        logger.info("eeprom_exported", size=size, skip=skip, done=result.transferred)
        return result

    def import_from(self, source: BinaryIO) -> TransferResult:
        """Copy *source* into the EEPROM from ``skip``.

        A source shorter than ``data_size`` ends the transfer, leaving the
        rest of the region untouched, unless zero padding is enabled, in
        which case the rest is zero-filled.
        """
        size, skip = self.data_size, self.skip
        self._check_span(skip, size)
        result = TransferResult(data_size=size, skip=skip)

        self._eeprom.seek(skip)
        remaining = size
        source_done = False
        while remaining:
            if self._abort.requested:
                result.aborted = True
                logger.warning(
                    "eeprom_transfer_aborted", done=result.transferred + result.padded
                )
                break
            want = min(BUFFER_SIZE, remaining)
            pad = 0
            if source_done:
                data, pad = b"", want
            else:
                data = source.read(want)
                if len(data) < want:
                    source_done = True
                    if not self._options.zero_padding:
                        if data:
                            self._eeprom.write(data)
                            result.transferred += len(data)
                            self._progress(result.transferred)
                        logger.info(
                            "eeprom_source_exhausted",
                            done=result.transferred,
                            untouched=size - result.transferred,
                        )
                        break
                    pad = want - len(data)

            self._eeprom.write(data + bytes(pad))
            remaining -= want
            result.transferred += len(data)
            result.padded += pad
            self._progress(result.transferred + result.padded)

        logger.info(
            "eeprom_imported",
            size=size,
            skip=skip,
            done=result.transferred,
            padded=result.padded,
        )
        return result
