"""
Connection Manager
==================

Supervises the capture session lifecycle for a single camera.

State machine:
    [Opening]   --success-->            [Streaming]
    [Opening]   --failure-->            [Backoff]
    [Streaming] --reconnect/exception--> [Backoff]
    [Streaming] --user exit-->          [Terminated: success]
    [Backoff]   --retries remain-->     [Opening]   (after sleeping wait_time)
    [Backoff]   --retries exhausted-->  [Terminated: failure]

Every failed attempt consumes one retry and doubles the wait time. Only a
successful frame read restores the full budget; a stream that opens but
never delivers a frame keeps consuming retries.
"""

import logging
import time
from typing import Callable, Optional

from motion_recorder.config import Settings
from motion_recorder.models.retry import RetryState
from motion_recorder.models.session import SessionEnd
from motion_recorder.processing.exit_signal import ExitSignal, KeyPollExitSignal
from motion_recorder.processing.frame_writer import PreviewWindow
from motion_recorder.processing.processor import FrameProcessor, ProcessingError
from motion_recorder.stream.session import SessionOpenError, StreamSession


logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Reconnect-and-detect loop around a FrameProcessor.

    Attributes:
        source: Camera URL
        settings: Loaded settings
        retry_state: Retry budget as of the last transition
    """

    def __init__(
        self,
        source: str,
        settings: Settings,
        processor: Optional[FrameProcessor] = None,
        exit_signal: Optional[ExitSignal] = None,
        session_factory: Optional[Callable[[str], StreamSession]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize connection manager.

        Args:
            source: Camera URL, file path or device index
            settings: Loaded settings
            processor: Frame processor (built from settings if None)
            exit_signal: Exit check shared with the processor
            session_factory: Opens a StreamSession for a source; raises SessionOpenError
            sleep: Blocking sleep used for backoff
        """
        self.source = source
        self.settings = settings
        self.exit_signal = exit_signal or KeyPollExitSignal(settings.output.key_poll_ms)
        self.processor = processor or FrameProcessor.from_settings(settings, self.exit_signal)
        self._session_factory = session_factory or self._open_session
        self._sleep = sleep
        self.retry_state = RetryState.initial(
            settings.retry.max_retries,
            settings.retry.minimal_wait_seconds,
            settings.retry.max_wait_seconds,
        )
        self.attempts: int = 0

    def _open_session(self, source: str) -> StreamSession:
        return StreamSession.open(source, backend=self.settings.stream.backend)

    def run(self) -> bool:
        """
        Connect and process until the user exits or retries run out.

        Returns:
            True if processing ended on a user exit, False if retries were exhausted
        """
        try:
            return self._run()
        finally:
            PreviewWindow(enabled=self.settings.output.show_preview).close()

    def _run(self) -> bool:
        logger.info(f"Starting motion recorder for {self.source}")

        while not self.retry_state.exhausted:
            if self.exit_signal.cancelled:
                logger.info("Exit requested, not reconnecting")
                return True

            self.attempts += 1
            try:
                session = self._session_factory(self.source)
            except SessionOpenError as e:
                logger.warning(f"{e}, retrying in {self.retry_state.wait_time:g} seconds...")
                self._backoff()
                continue

            logger.info(f"Connected to camera: {session.info.describe()}")

            try:
                outcome = self.processor.process(session, self.retry_state)
            except ProcessingError as e:
                self.retry_state = e.retry_state
                logger.error(f"Failed: {e}")
            except Exception as e:
                logger.error(f"Failed: {e}")
            else:
                self.retry_state = outcome.retry_state
                if outcome.exit_requested:
                    logger.info(
                        f"Stopped by user after {outcome.frames_processed} frames "
                        f"({outcome.frames_saved} saved)"
                    )
                    return True
                if outcome.end is SessionEnd.FATAL_FAULT:
                    logger.error(f"Failed: {outcome.reason}")
                else:
                    logger.warning("Stream interrupted, attempting to reconnect...")
            finally:
                session.release()

            self._backoff()

        logger.error(
            f"Giving up on {self.source}: {self.settings.retry.max_retries} "
            f"consecutive connection attempts failed"
        )
        return False

    def _backoff(self) -> None:
        """Consume one retry; sleep the current wait time unless the budget is gone."""
        current = self.retry_state
        self.retry_state = current.after_failure()
        if self.retry_state.exhausted:
            return

        logger.info(
            f"Waiting {current.wait_time:g}s before reconnecting "
            f"({self.retry_state.retries_left} attempts left)"
        )
        self._sleep(current.wait_time)
