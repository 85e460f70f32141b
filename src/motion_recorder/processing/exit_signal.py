"""
Exit Signal
===========

Cooperative cancellation checked once per processed frame.

KeyPollExitSignal combines two sources:
    - A key press observed by cv2.waitKey within delay_ms
    - A programmatic cancel(), e.g. from a SIGINT/SIGTERM handler

cv2.waitKey also pumps the HighGUI event loop, so it must be polled every
frame for the optional preview window to repaint.
"""

import logging
from typing import Callable, Optional, Protocol

import cv2


logger = logging.getLogger(__name__)


class ExitSignal(Protocol):
    """Protocol for per-frame exit checks."""

    @property
    def cancelled(self) -> bool:
        """Whether exit was already requested (no blocking)."""
        ...

    def poll(self) -> bool:
        """Check for an exit request, waiting at most a short timeout."""
        ...


class KeyPollExitSignal:
    """
    Exit on any key press or on cancel().

    Attributes:
        delay_ms: cv2.waitKey timeout per poll
    """

    def __init__(
        self,
        delay_ms: int = 30,
        wait_key: Optional[Callable[[int], int]] = None,
    ) -> None:
        self.delay_ms = delay_ms
        self._wait_key = wait_key or cv2.waitKey
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Request exit at the next poll."""
        self._cancelled = True

    def poll(self) -> bool:
        if self._cancelled:
            return True

        key = self._wait_key(self.delay_ms)
        if key >= 0:
            logger.info(f"Key {key} pressed, exit requested")
            self._cancelled = True

        return self._cancelled
