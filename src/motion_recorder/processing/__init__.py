"""
Processing Module
=================

Per-frame pipeline components:
    - FrameProcessor / ProcessOutcome / ProcessingError: Detection loop for one session
    - KeyPollExitSignal: Key press or programmatic exit check
    - FrameWriter / PreviewWindow: Snapshot persistence and preview
"""

from motion_recorder.processing.exit_signal import ExitSignal, KeyPollExitSignal
from motion_recorder.processing.frame_writer import (
    FrameWriter,
    PreviewWindow,
    format_timestamp,
    snapshot_filename,
)
from motion_recorder.processing.processor import FrameProcessor, ProcessOutcome, ProcessingError

__all__ = [
    "ExitSignal",
    "FrameProcessor",
    "FrameWriter",
    "KeyPollExitSignal",
    "PreviewWindow",
    "ProcessOutcome",
    "ProcessingError",
    "format_timestamp",
    "snapshot_filename",
]
