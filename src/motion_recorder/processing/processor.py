"""
Frame Processor
===============

Per-session motion detection loop.

For every frame read from an open StreamSession:
    1. Stop on any failed read and report why (no retry here)
    2. Reset the retry budget (a frame arrived, the stream is healthy)
    3. Convert to greyscale
    4. Seed the baseline on the first frame, otherwise blend it in
    5. Score the frame against the updated baseline
    6. Apply the save policy and write the colour frame when required
    7. Poll the exit signal

Key Design Decisions:
    - A fresh BaselineImage and SavePolicy per process() call; nothing
      carries over between sessions
    - RetryState goes in as an argument and comes back in ProcessOutcome,
      or on ProcessingError when an exception escapes the loop
"""

import logging
from dataclasses import dataclass
from typing import Optional

from motion_recorder.config import DetectionConfig, Settings
from motion_recorder.detection import BaselineImage, SavePolicy, compute_difference_score, to_greyscale
from motion_recorder.models.retry import RetryState
from motion_recorder.models.session import SessionEnd
from motion_recorder.processing.exit_signal import ExitSignal, KeyPollExitSignal
from motion_recorder.processing.frame_writer import FrameWriter, PreviewWindow, format_timestamp
from motion_recorder.stream.frame import ReadStatus
from motion_recorder.stream.session import StreamSession


logger = logging.getLogger(__name__)


_READ_FAILURES = {
    ReadStatus.END_OF_STREAM: SessionEnd.END_OF_STREAM,
    ReadStatus.TRANSIENT_FAULT: SessionEnd.TRANSIENT_FAULT,
    ReadStatus.FATAL_FAULT: SessionEnd.FATAL_FAULT,
}


@dataclass(frozen=True, slots=True)
class ProcessOutcome:
    """
    Result of one FrameProcessor.process() call.

    Attributes:
        end: Why processing stopped
        retry_state: Retry budget after the session
        reason: Failure description (None on user exit)
        frames_processed: Frames successfully read
        frames_saved: Frames written to disk
    """

    end: SessionEnd
    retry_state: RetryState
    reason: Optional[str] = None
    frames_processed: int = 0
    frames_saved: int = 0

    @property
    def exit_requested(self) -> bool:
        """True when the user asked to stop; False means reconnect."""
        return self.end is SessionEnd.USER_EXIT


class ProcessingError(Exception):
    """
    Raised when the loop fails with an unexpected exception.

    Carries the retry budget as of the last good read, so a session that
    delivered frames before failing still counts as healthy.

    Attributes:
        retry_state: Retry budget when the exception escaped
    """

    def __init__(self, message: str, retry_state: RetryState) -> None:
        super().__init__(message)
        self.retry_state = retry_state


class FrameProcessor:
    """
    Runs the detection loop for one active session.

    Attributes:
        detection: Thresholds and blend weight
        writer: Snapshot writer
        exit_signal: Per-frame exit check
        preview: Optional preview window
    """

    def __init__(
        self,
        detection: DetectionConfig,
        writer: FrameWriter,
        exit_signal: ExitSignal,
        preview: Optional[PreviewWindow] = None,
    ) -> None:
        self.detection = detection
        self.writer = writer
        self.exit_signal = exit_signal
        self.preview = preview or PreviewWindow(enabled=False)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        exit_signal: Optional[ExitSignal] = None,
    ) -> "FrameProcessor":
        """Build a processor wired to OpenCV from loaded settings."""
        return cls(
            detection=settings.detection,
            writer=FrameWriter(settings.output.images_dir),
            exit_signal=exit_signal or KeyPollExitSignal(settings.output.key_poll_ms),
            preview=PreviewWindow(enabled=settings.output.show_preview),
        )

    def process(self, session: StreamSession, retry_state: RetryState) -> ProcessOutcome:
        """
        Consume frames until a read fails or exit is requested.

        Args:
            session: Open capture session
            retry_state: Retry budget on entry

        Returns:
            ProcessOutcome; exit_requested is False when the caller should reconnect

        Raises:
            ProcessingError: Wrapping any exception raised inside the loop
        """
        baseline = BaselineImage(self.detection.blend_alpha)
        policy = SavePolicy(self.detection.score_threshold, self.detection.save_countdown)
        frames_processed = 0
        frames_saved = 0

        try:
            while True:
                result = session.read()
                if not result.is_ok:
                    logger.warning(
                        f"{result.reason}, attempting to reconnect in "
                        f"{retry_state.wait_time:g} seconds..."
                    )
                    return ProcessOutcome(
                        end=_READ_FAILURES[result.status],
                        retry_state=retry_state,
                        reason=result.reason,
                        frames_processed=frames_processed,
                        frames_saved=frames_saved,
                    )

                retry_state = retry_state.reset()
                frames_processed += 1
                frame = result.frame

                grey = to_greyscale(frame.image)
                if baseline.update(grey):
                    logger.info("Establishing baseline...")
                    continue

                score = compute_difference_score(grey, baseline.image, self.detection.pixel_threshold)
                timestamp = format_timestamp(frame.captured_at)
                logger.info(f"{timestamp} score: {score:.6f}")

                decision = policy.evaluate(score)
                if decision.triggered:
                    logger.debug(f"Motion triggered at frame {frame.index} (score={score:.6f})")
                if decision.save and self.writer.write(frame, score, timestamp) is not None:
                    frames_saved += 1

                self.preview.show(frame.image)

                if self.exit_signal.poll():
                    logger.info("Exit requested, stopping stream processing")
                    return ProcessOutcome(
                        end=SessionEnd.USER_EXIT,
                        retry_state=retry_state,
                        frames_processed=frames_processed,
                        frames_saved=frames_saved,
                    )
        except Exception as e:
            raise ProcessingError(str(e), retry_state) from e
