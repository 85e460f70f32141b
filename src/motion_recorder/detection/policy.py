"""
Save Policy
===========

Decides which frames are persisted.

A score above score_threshold triggers a detection and re-arms the save
countdown. While the countdown is positive, frames keep being saved even
when the score has dropped, so each trigger yields `countdown` saved frames
(the trigger frame plus countdown - 1 trailing frames) unless a new trigger
re-arms it.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SaveDecision:
    """
    Per-frame output of SavePolicy.

    Attributes:
        save: Whether the frame should be written
        triggered: Whether this frame's score crossed the threshold
        countdown: Countdown value after this frame
    """

    save: bool
    triggered: bool
    countdown: int


class SavePolicy:
    """
    Threshold trigger with a trailing save countdown.

    Attributes:
        score_threshold: Score above which a detection triggers
        countdown_length: Countdown value set by each trigger
        countdown: Frames still owed to the last trigger
    """

    def __init__(self, score_threshold: float = 0.1, countdown_length: int = 10) -> None:
        if countdown_length < 1:
            raise ValueError(f"countdown_length must be >= 1, got {countdown_length}")
        self.score_threshold = score_threshold
        self.countdown_length = countdown_length
        self.countdown: int = 0

    def evaluate(self, score: float) -> SaveDecision:
        """Apply the policy to one frame's difference score."""
        triggered = score > self.score_threshold
        if triggered:
            self.countdown = self.countdown_length

        save = triggered or self.countdown > 0
        if save:
            self.countdown -= 1

        return SaveDecision(save=save, triggered=triggered, countdown=self.countdown)
