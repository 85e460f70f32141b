"""
Frame Data Model
================

Internal frame representation and the result type returned by every read.

Design Rules:
    - Frame holds the ORIGINAL colour image; greyscale is derived downstream
    - A read never raises for expected failures; it returns a ReadResult
    - ReadResult.frame is set only when status is OK
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

import numpy as np


@dataclass(frozen=True, slots=True)
class Frame:
    """
    One captured colour frame.

    Attributes:
        image: BGR image as np.ndarray (H, W, 3), dtype=uint8
        captured_at: Local wall-clock time of the read
        index: Position of the frame within its session (0-based)
    """

    image: np.ndarray
    captured_at: datetime
    index: int

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(index={self.index}, "
            f"shape={self.image.shape}, "
            f"captured_at={self.captured_at.isoformat(timespec='milliseconds')})"
        )


class ReadStatus(str, Enum):
    """Outcome of a single frame read."""

    OK = "OK"
    END_OF_STREAM = "END_OF_STREAM"
    TRANSIENT_FAULT = "TRANSIENT_FAULT"
    FATAL_FAULT = "FATAL_FAULT"


@dataclass(frozen=True, slots=True)
class ReadResult:
    """
    Result of StreamSession.read().

    Attributes:
        status: Which variant this is
        frame: Captured frame (OK only)
        reason: Human-readable failure description (failures only)
    """

    status: ReadStatus
    frame: Optional[Frame] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, frame: Frame) -> "ReadResult":
        return cls(status=ReadStatus.OK, frame=frame)

    @classmethod
    def end_of_stream(cls, reason: str) -> "ReadResult":
        return cls(status=ReadStatus.END_OF_STREAM, reason=reason)

    @classmethod
    def transient(cls, reason: str) -> "ReadResult":
        return cls(status=ReadStatus.TRANSIENT_FAULT, reason=reason)

    @classmethod
    def fatal(cls, reason: str) -> "ReadResult":
        return cls(status=ReadStatus.FATAL_FAULT, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status is ReadStatus.OK
