"""
Retry State
===========

Immutable backoff bookkeeping shared by the connection manager and the
frame processor.

Each component receives the current RetryState and returns the state it
leaves behind. Nothing mutates a RetryState in place.

Transitions:
    initial()        -> {max_retries, minimal_wait}
    after_failure()  -> wait doubled (optionally capped), one retry consumed
    reset()          -> back to initial() after any successful read
"""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True, slots=True)
class RetryState:
    """
    Remaining connection budget and the next backoff delay.

    Attributes:
        retries_left: Connection attempts still allowed
        wait_time: Seconds to sleep before the next attempt
        max_retries: Budget restored by reset()
        minimal_wait: Delay restored by reset()
        max_wait: Optional ceiling for wait_time (None = uncapped)
    """

    retries_left: int
    wait_time: float
    max_retries: int
    minimal_wait: float
    max_wait: Optional[float] = None

    @classmethod
    def initial(
        cls,
        max_retries: int,
        minimal_wait: float,
        max_wait: Optional[float] = None,
    ) -> "RetryState":
        """Create a full-budget state."""
        return cls(
            retries_left=max_retries,
            wait_time=minimal_wait,
            max_retries=max_retries,
            minimal_wait=minimal_wait,
            max_wait=max_wait,
        )

    @property
    def exhausted(self) -> bool:
        """Whether no connection attempts remain."""
        return self.retries_left <= 0

    def reset(self) -> "RetryState":
        """Restore the full budget and the minimal delay."""
        return replace(self, retries_left=self.max_retries, wait_time=self.minimal_wait)

    def after_failure(self) -> "RetryState":
        """Consume one retry and double the delay."""
        wait_time = self.wait_time * 2
        if self.max_wait is not None:
            wait_time = min(wait_time, self.max_wait)
        return replace(self, retries_left=self.retries_left - 1, wait_time=wait_time)

    def __repr__(self) -> str:
        return f"RetryState(retries_left={self.retries_left}, wait_time={self.wait_time:g}s)"
