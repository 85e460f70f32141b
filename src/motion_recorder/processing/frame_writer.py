"""
Frame Writer
============

Persists detection snapshots and drives the optional preview window.

Output naming:
    <images_dir>/<YYYY-MM-DD HH:MM:SS.mmm> (<score>).jpg

The score is written with six decimals, e.g. "2026-10-17 08:15:02.417 (5.000000).jpg".
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import cv2
import numpy as np

from motion_recorder.stream.frame import Frame


logger = logging.getLogger(__name__)


def format_timestamp(moment: datetime) -> str:
    """Local time with millisecond precision: YYYY-MM-DD HH:MM:SS.mmm"""
    return moment.strftime("%Y-%m-%d %H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def snapshot_filename(timestamp: str, score: float) -> str:
    return f"{timestamp} ({score:.6f}).jpg"


class FrameWriter:
    """
    Writes original colour frames to images_dir.

    Attributes:
        images_dir: Output directory (must exist unless ensure_directory() is called)
    """

    def __init__(
        self,
        images_dir: str = "images",
        imwrite: Optional[Callable[[str, np.ndarray], bool]] = None,
    ) -> None:
        self.images_dir = Path(images_dir)
        self._imwrite = imwrite or cv2.imwrite

    def ensure_directory(self) -> None:
        """Create images_dir (and parents) if missing."""
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def write(self, frame: Frame, score: float, timestamp: Optional[str] = None) -> Optional[Path]:
        """
        Write frame.image to disk.

        Args:
            frame: Captured frame (colour image is written as-is)
            score: Difference score, embedded in the file name
            timestamp: Pre-formatted timestamp (defaults to frame.captured_at)

        Returns:
            Path written, or None if OpenCV reported a failure
        """
        if timestamp is None:
            timestamp = format_timestamp(frame.captured_at)

        path = self.images_dir / snapshot_filename(timestamp, score)
        try:
            written = self._imwrite(str(path), frame.image)
        except cv2.error as e:
            logger.warning(f"Failed to write {path}: {e}")
            written = False
        else:
            if not written:
                logger.warning(f"Failed to write {path} (does {self.images_dir} exist?)")

        if not written:
            return None

        logger.debug(f"Saved {path}")
        return path


class PreviewWindow:
    """
    Optional on-screen preview of captured frames.

    Disabled windows are no-ops so callers never branch on the flag.
    """

    def __init__(
        self,
        enabled: bool = False,
        name: str = "Camera",
        imshow: Optional[Callable[[str, np.ndarray], None]] = None,
        destroy_all: Optional[Callable[[], None]] = None,
    ) -> None:
        self.enabled = enabled
        self.name = name
        self._imshow = imshow or cv2.imshow
        self._destroy_all = destroy_all or cv2.destroyAllWindows

    def show(self, image: np.ndarray) -> None:
        if self.enabled:
            self._imshow(self.name, image)

    def close(self) -> None:
        if self.enabled:
            self._destroy_all()
