"""
Frame Processor Tests
=====================

Per-session detection loop driven by scripted captures.
"""

import numpy as np
import pytest

from motion_recorder.config import DetectionConfig
from motion_recorder.models import RetryState, SessionEnd
from motion_recorder.processing import FrameProcessor, FrameWriter, PreviewWindow, ProcessingError

from conftest import (
    GRAB_FAIL,
    BrokenExitSignal,
    RETRIEVE_FAIL,
    FakeExitSignal,
    RecordingImwrite,
    make_session,
    patch_frame,
    solid_frame,
)


def build_processor(imwrite=None, exit_signal=None, preview=None, **detection):
    return FrameProcessor(
        detection=DetectionConfig(**detection),
        writer=FrameWriter("images", imwrite=imwrite or RecordingImwrite()),
        exit_signal=exit_signal or FakeExitSignal(),
        preview=preview,
    )


class TestBaselineLifecycle:
    """First-frame and quiet-scene behaviour."""

    def test_first_frame_establishes_baseline_without_writing(self):
        imwrite = RecordingImwrite()
        exit_signal = FakeExitSignal()
        processor = build_processor(imwrite, exit_signal)

        outcome = processor.process(make_session([solid_frame(50)]), RetryState.initial(10, 2))

        assert outcome.end is SessionEnd.END_OF_STREAM
        assert outcome.frames_processed == 1
        assert imwrite.paths == []
        assert exit_signal.polls == 0

    def test_identical_frames_write_nothing(self):
        imwrite = RecordingImwrite()
        processor = build_processor(imwrite)

        outcome = processor.process(
            make_session([solid_frame(80)] * 5), RetryState.initial(10, 2)
        )

        assert outcome.frames_processed == 5
        assert outcome.frames_saved == 0
        assert imwrite.paths == []

    def test_fresh_baseline_per_call(self):
        imwrite = RecordingImwrite()
        processor = build_processor(imwrite)

        processor.process(make_session([solid_frame(0)] * 3), RetryState.initial(10, 2))
        # A new session must seed from its own first frame, not compare to the old scene.
        processor.process(make_session([solid_frame(250)] * 3), RetryState.initial(10, 2))

        assert imwrite.paths == []


class TestDetection:
    """Trigger and trailing capture."""

    def test_trigger_writes_frame_and_nine_trailing_frames(self):
        imwrite = RecordingImwrite()
        processor = build_processor(imwrite)
        script = [solid_frame(0), patch_frame(70)] + [solid_frame(0)] * 12

        outcome = processor.process(make_session(script), RetryState.initial(10, 2))

        assert outcome.frames_processed == 14
        assert outcome.frames_saved == 10
        assert len(imwrite.paths) == 10
        assert imwrite.paths[0] == "images/2026-10-17 08:15:02.457 (5.000000).jpg"
        assert all(p.endswith("(0.000000).jpg") for p in imwrite.paths[1:])

    def test_trailing_capture_cut_short_by_stream_end(self):
        imwrite = RecordingImwrite()
        processor = build_processor(imwrite)
        script = [solid_frame(0), patch_frame(70), solid_frame(0), solid_frame(0)]

        outcome = processor.process(make_session(script), RetryState.initial(10, 2))

        assert outcome.frames_saved == 3

    def test_original_colour_frame_is_written(self):
        written = []
        processor = build_processor(lambda path, image: written.append(image) or True)
        colour = np.zeros((10, 51, 3), dtype=np.uint8)
        colour[..., 2] = 255

        processor.process(make_session([solid_frame(0), colour]), RetryState.initial(10, 2))

        assert len(written) == 1
        assert written[0].ndim == 3
        assert (written[0][..., 2] == 255).all()

    def test_failed_write_does_not_end_session(self):
        imwrite = RecordingImwrite(result=False)
        processor = build_processor(imwrite)
        script = [solid_frame(0), patch_frame(70), solid_frame(0)]

        outcome = processor.process(make_session(script), RetryState.initial(10, 2))

        assert outcome.end is SessionEnd.END_OF_STREAM
        assert outcome.frames_processed == 3
        assert outcome.frames_saved == 0
        assert len(imwrite.paths) == 2

    def test_custom_thresholds(self):
        imwrite = RecordingImwrite()
        processor = build_processor(imwrite, score_threshold=10.0, save_countdown=1)
        script = [solid_frame(0), patch_frame(70), solid_frame(0)]

        processor.process(make_session(script), RetryState.initial(10, 2))

        assert imwrite.paths == []


class TestTermination:
    """Exit and failure outcomes."""

    def test_exit_signal_ends_with_user_exit(self):
        exit_signal = FakeExitSignal(exit_after=2)
        processor = build_processor(exit_signal=exit_signal)

        outcome = processor.process(
            make_session([solid_frame(0)] * 10), RetryState.initial(10, 2)
        )

        assert outcome.end is SessionEnd.USER_EXIT
        assert outcome.exit_requested
        assert outcome.frames_processed == 3
        assert outcome.reason is None

    def test_read_failure_requests_reconnect(self):
        processor = build_processor()

        outcome = processor.process(
            make_session([solid_frame(0), RETRIEVE_FAIL]), RetryState.initial(10, 2)
        )

        assert outcome.end is SessionEnd.TRANSIENT_FAULT
        assert not outcome.exit_requested
        assert outcome.reason == "Failed to retrieve grabbed frame"

    def test_successful_read_resets_retry_state(self):
        processor = build_processor()
        depleted = RetryState(retries_left=1, wait_time=512, max_retries=10, minimal_wait=2)

        outcome = processor.process(make_session([solid_frame(0), GRAB_FAIL]), depleted)

        assert outcome.retry_state == RetryState.initial(10, 2)

    def test_no_frames_leaves_retry_state_untouched(self):
        processor = build_processor()
        depleted = RetryState(retries_left=3, wait_time=16, max_retries=10, minimal_wait=2)

        outcome = processor.process(make_session([GRAB_FAIL]), depleted)

        assert outcome.retry_state == depleted

    def test_exception_carries_reset_retry_state(self):
        processor = build_processor(exit_signal=BrokenExitSignal(fail_on=2))
        depleted = RetryState(retries_left=1, wait_time=512, max_retries=10, minimal_wait=2)

        with pytest.raises(ProcessingError, match="display backend died") as excinfo:
            processor.process(make_session([solid_frame(0)] * 5), depleted)

        assert excinfo.value.retry_state == RetryState.initial(10, 2)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_exception_before_any_frame_keeps_retry_state(self):
        processor = build_processor()
        depleted = RetryState(retries_left=3, wait_time=16, max_retries=10, minimal_wait=2)

        with pytest.raises(ProcessingError) as excinfo:
            processor.process(make_session([ValueError("bad packet")]), depleted)

        assert excinfo.value.retry_state == depleted

    def test_preview_shows_analysed_frames(self):
        shown = []
        preview = PreviewWindow(enabled=True, imshow=lambda name, image: shown.append(name))
        processor = build_processor(preview=preview)

        processor.process(make_session([solid_frame(0)] * 4), RetryState.initial(10, 2))

        assert shown == ["Camera"] * 3
