"""
Test Configuration
==================

Pytest fixtures and test doubles for the motion recorder.

No camera, no GUI and no real sleeping: captures are scripted fakes and
backoff sleeps are recorded instead of performed.
"""

from datetime import datetime, timedelta
from typing import List, Optional

import numpy as np
import pytest

from motion_recorder.config import Settings
from motion_recorder.stream.session import StreamSession


GRAB_FAIL = "grab_fail"
RETRIEVE_FAIL = "retrieve_fail"
EMPTY = "empty"


class FakeCapture:
    """
    Scripted stand-in for cv2.VideoCapture.

    Each script item is consumed by one grab/retrieve pair:
        np.ndarray     - a successful frame
        GRAB_FAIL      - grab() returns False
        RETRIEVE_FAIL  - retrieve() returns (False, None)
        EMPTY          - retrieve() returns an empty array
        Exception      - raised from grab()
    An exhausted script behaves like GRAB_FAIL.
    """

    def __init__(self, script=(), opened: bool = True, width: int = 640, height: int = 480, fps: float = 25.0):
        self._script = list(script)
        self._opened = opened
        self._current = None
        self.props = {3: float(width), 4: float(height), 5: fps}
        self.released = False
        self.grab_calls = 0

    def isOpened(self) -> bool:
        return self._opened

    def grab(self) -> bool:
        self.grab_calls += 1
        self._current = self._script.pop(0) if self._script else GRAB_FAIL
        if isinstance(self._current, Exception):
            raise self._current
        return not (isinstance(self._current, str) and self._current == GRAB_FAIL)

    def retrieve(self):
        item = self._current
        if isinstance(item, str) and item == RETRIEVE_FAIL:
            return False, None
        if isinstance(item, str) and item == EMPTY:
            return True, np.empty((0, 0, 3), dtype=np.uint8)
        return True, item

    def get(self, prop_id: int) -> float:
        return self.props.get(prop_id, 0.0)

    def getBackendName(self) -> str:
        return "FAKE"

    def release(self) -> None:
        self.released = True


class SteppingClock:
    """Deterministic clock advancing 40 ms per call."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2026, 10, 17, 8, 15, 2, 417000)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(milliseconds=40)
        return current


class FakeExitSignal:
    """Exit signal that fires on the N-th poll (never when exit_after is None)."""

    def __init__(self, exit_after: Optional[int] = None):
        self.exit_after = exit_after
        self.polls = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def poll(self) -> bool:
        self.polls += 1
        if self.exit_after is not None and self.polls >= self.exit_after:
            self._cancelled = True
        return self._cancelled


class BrokenExitSignal(FakeExitSignal):
    """Exit signal whose N-th poll raises, like a display backend dying mid-stream."""

    def __init__(self, fail_on: int, error: Exception = None):
        super().__init__()
        self.fail_on = fail_on
        self.error = error or RuntimeError("display backend died")

    def poll(self) -> bool:
        self.polls += 1
        if self.polls >= self.fail_on:
            raise self.error
        return False


class RecordingImwrite:
    """cv2.imwrite replacement that records file names."""

    def __init__(self, result: bool = True):
        self.result = result
        self.paths: List[str] = []

    def __call__(self, path: str, image: np.ndarray) -> bool:
        self.paths.append(path)
        return self.result


def solid_frame(value: int, height: int = 10, width: int = 51) -> np.ndarray:
    """Uniform BGR frame."""
    return np.full((height, width, 3), value, dtype=np.uint8)


def patch_frame(value: int, pixels: int = 10, height: int = 10, width: int = 51) -> np.ndarray:
    """Black BGR frame with the first `pixels` pixels set to value."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image.reshape(-1, 3)[:pixels] = value
    return image


def make_session(script, **kwargs) -> StreamSession:
    return StreamSession("rtsp://camera.test/stream", FakeCapture(script, **kwargs), clock=SteppingClock())


@pytest.fixture
def settings():
    """Default settings; tests record backoff sleeps instead of performing them."""
    return Settings.model_validate({"retry": {"minimal_wait_seconds": 2.0}})


@pytest.fixture
def recording_imwrite():
    return RecordingImwrite()


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no MOTION_* variables and an empty working directory."""
    import os

    for key in list(os.environ):
        if key.startswith("MOTION_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    return tmp_path
