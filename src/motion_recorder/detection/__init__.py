"""
Detection Module
================

Background modelling and motion scoring.

This module provides:
    - BaselineImage: EMA background model, one per session
    - compute_difference_score: Thresholded absolute-difference mean
    - SavePolicy: Trigger threshold with trailing save countdown
"""

from motion_recorder.detection.baseline import BaselineImage
from motion_recorder.detection.policy import SaveDecision, SavePolicy
from motion_recorder.detection.scoring import (
    compute_difference_score,
    threshold_difference,
    to_greyscale,
)

__all__ = [
    "BaselineImage",
    "SaveDecision",
    "SavePolicy",
    "compute_difference_score",
    "threshold_difference",
    "to_greyscale",
]
