"""
Data Models
===========

Value types shared across the motion recorder.

Models:
    - RetryState: Immutable backoff budget threaded between components
    - SessionInfo: Metadata reported when a capture session opens
    - SessionEnd: Reason a processing session stopped
"""

from motion_recorder.models.retry import RetryState
from motion_recorder.models.session import SessionEnd, SessionInfo

__all__ = [
    "RetryState",
    "SessionEnd",
    "SessionInfo",
]
