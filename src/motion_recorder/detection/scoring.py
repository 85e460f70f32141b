"""
Difference Scoring
==================

Pixel operations that turn a frame and a baseline into a motion score.

Algorithm:
1. Convert the colour frame to greyscale
2. Absolute difference against the baseline
3. Binary threshold (changed pixels -> 255, others -> 0)
4. Mean over all pixels

The score is therefore in [0, 255]: 0 for an unchanged scene, 255 when
every pixel changed by more than the threshold.
"""

import cv2
import numpy as np


def to_greyscale(image: np.ndarray) -> np.ndarray:
    """
    Convert a BGR or BGRA frame to greyscale.

    Single-channel input is returned unchanged.
    """
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def threshold_difference(
    grey: np.ndarray,
    baseline: np.ndarray,
    pixel_threshold: int = 30,
) -> np.ndarray:
    """Binary 0/255 mask of pixels differing from baseline by more than pixel_threshold."""
    diff = cv2.absdiff(grey, baseline)
    _, mask = cv2.threshold(diff, pixel_threshold, 255, cv2.THRESH_BINARY)
    return mask


def compute_difference_score(
    grey: np.ndarray,
    baseline: np.ndarray,
    pixel_threshold: int = 30,
) -> float:
    """
    Mean value of the thresholded difference between grey and baseline.

    Args:
        grey: Current greyscale frame (H, W), uint8
        baseline: Baseline raster of the same shape, uint8
        pixel_threshold: Per-pixel change threshold (0-255)

    Returns:
        Difference score in [0, 255]
    """
    mask = threshold_difference(grey, baseline, pixel_threshold)
    return float(cv2.mean(mask)[0])
