"""
Baseline Image
==============

Exponential moving-average background model.

The baseline starts empty. The first greyscale frame seeds it directly;
every later frame is blended in with

    baseline = alpha * baseline + (1 - alpha) * grey

A BaselineImage belongs to exactly one processing session. Reconnecting
creates a new one.
"""

import logging
from typing import Optional

import cv2
import numpy as np


logger = logging.getLogger(__name__)


class BaselineImage:
    """
    Running greyscale average of past frames.

    Attributes:
        alpha: Weight of the previous baseline when blending (0..1)
        image: Current baseline raster, or None before the first frame
    """

    def __init__(self, alpha: float = 0.5) -> None:
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {alpha}")
        self.alpha = alpha
        self._image: Optional[np.ndarray] = None

    @property
    def image(self) -> Optional[np.ndarray]:
        return self._image

    @property
    def is_empty(self) -> bool:
        return self._image is None

    def update(self, grey: np.ndarray) -> bool:
        """
        Blend a greyscale frame into the baseline.

        Args:
            grey: Greyscale frame (H, W), uint8

        Returns:
            True if the frame seeded the baseline (no blending happened),
            False if it was blended into an existing baseline.
        """
        if self._image is None:
            self._image = grey.copy()
            return True

        if grey.shape != self._image.shape:
            logger.warning(
                f"Frame size changed from {self._image.shape} to {grey.shape}, "
                f"re-seeding baseline"
            )
            self._image = grey.copy()
            return True

        self._image = cv2.addWeighted(self._image, self.alpha, grey, 1.0 - self.alpha, 0)
        return False
