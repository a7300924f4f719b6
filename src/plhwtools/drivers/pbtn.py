"""Push buttons on a PCA9534-style GPIO expander.

Buttons 5 to 9 sit on input bits 0 to 4 and pull their line low when
pressed.  All masks used here are in "pressed" polarity: a set bit
means the button is held down.
"""

from __future__ import annotations

from plhwtools.drivers.base import Device
from plhwtools.drivers.pmic import DEFAULT_POLL_S
from plhwtools.exceptions import InvalidParameterError
from plhwtools.utils.logging import get_logger
from plhwtools.utils.polling import AbortToken, poll_until

logger = get_logger(__name__)

REG_INPUT = 0x00
REG_CONFIG = 0x03

PBTN_5 = 1 << 0
PBTN_6 = 1 << 1
PBTN_7 = 1 << 2
PBTN_8 = 1 << 3
PBTN_9 = 1 << 4
PBTN_ALL = PBTN_5 | PBTN_6 | PBTN_7 | PBTN_8 | PBTN_9

DEFAULT_WAIT_TIMEOUT_S = 60.0


def button_names(mask: int) -> list[str]:
    """Return ``#N`` labels for the buttons in *mask*."""
    return [f"#{n + 5}" for n in range(5) if mask & (1 << n)]


class PushButtons(Device):
    """Five push buttons read through an I2C input port."""

    NAME = "pbtn"
    DEFAULT_ADDRESS = 0x20

    def __init__(self, bus, address: int | None = None,
                 timeout_s: float = DEFAULT_WAIT_TIMEOUT_S) -> None:
        super().__init__(bus, address)
        self._timeout_s = timeout_s
        self._configured = False

    def _configure(self) -> None:
        if not self._configured:
            self._update_bits(REG_CONFIG, PBTN_ALL, True)
            self._configured = True

    def read(self) -> int:
        """Return the mask of buttons currently pressed."""
        self._configure()
        return ~self._read_byte(REG_INPUT) & PBTN_ALL

    def _check_mask(self, mask: int) -> None:
        if not mask or mask & ~PBTN_ALL:
            raise InvalidParameterError(f"invalid button mask 0x{mask:02X}")

    def wait(
        self,
        mask: int,
        on: bool,
        timeout_s: float | None = None,
        poll_s: float = DEFAULT_POLL_S,
        abort: AbortToken | None = None,
    ) -> int:
        """Block until every button in *mask* is pressed (or released).

        Returns:
            The pressed-buttons mask that satisfied the wait.

        Raises:
            TimeoutError: If the state is not reached in time.
            AbortedError: If the user aborts while waiting.
        """
        self._check_mask(mask)
        wanted = mask if on else 0
        state = poll_until(
            self.read,
            lambda pressed: (pressed & mask) == wanted,
            f"buttons {' '.join(button_names(mask))} {'on' if on else 'off'}",
            timeout_s=self._timeout_s if timeout_s is None else timeout_s,
            poll_s=poll_s,
            abort=abort,
        )
        logger.debug("pbtn_wait_done", mask=f"0x{mask:02X}", on=on, state=f"0x{state:02X}")
        return state

    def wait_any(
        self,
        mask: int,
        on: bool,
        timeout_s: float | None = None,
        poll_s: float = DEFAULT_POLL_S,
        abort: AbortToken | None = None,
    ) -> int:
        """Block until at least one button in *mask* is pressed (or released).

        Returns:
            The buttons of *mask* that are in the requested state.
        """
        self._check_mask(mask)

        def matching(pressed: int) -> int:
            return (pressed if on else ~pressed) & mask

        state = poll_until(
            self.read,
            lambda pressed: bool(matching(pressed)),
            f"any button {'on' if on else 'off'}",
            timeout_s=self._timeout_s if timeout_s is None else timeout_s,
            poll_s=poll_s,
            abort=abort,
        )
        return matching(state)
