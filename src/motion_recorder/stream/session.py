"""
Stream Session
==============

Thin wrapper around cv2.VideoCapture for a single network camera.

This module:
    - Opens a capture against a URL with a named backend
    - Reports connection metadata (backend, resolution, fps)
    - Reads frames as ReadResult values (grab, retrieve, empty check)
    - Releases the OS-level video session

Design Rules:
    - This is the ONLY place in the codebase that talks to VideoCapture
    - Open failures raise SessionOpenError; read failures never raise
    - cv2.error during a read becomes a FATAL_FAULT result

Example:
    from motion_recorder.stream import StreamSession

    with StreamSession.open("rtsp://camera/stream") as session:
        result = session.read()
        if result.is_ok:
            process(result.frame)
"""

import logging
from datetime import datetime
from typing import Any, Callable, Optional, Protocol, Tuple, Union

import cv2
import numpy as np

from motion_recorder.models.session import SessionInfo
from motion_recorder.stream.frame import Frame, ReadResult


logger = logging.getLogger(__name__)


BACKENDS = {
    "any": cv2.CAP_ANY,
    "ffmpeg": cv2.CAP_FFMPEG,
    "gstreamer": cv2.CAP_GSTREAMER,
}


class SessionOpenError(Exception):
    """Raised when a capture session cannot be established."""
    pass


class VideoSource(Protocol):
    """
    Subset of the cv2.VideoCapture interface used by StreamSession.

    Tests substitute scripted fakes that implement these methods.
    """

    def isOpened(self) -> bool: ...

    def grab(self) -> bool: ...

    def retrieve(self) -> Tuple[bool, Optional[np.ndarray]]: ...

    def get(self, prop_id: int) -> float: ...

    def getBackendName(self) -> str: ...

    def release(self) -> None: ...


def resolve_backend(name: str) -> int:
    """
    Map a backend name to its OpenCV API preference constant.

    Raises:
        ValueError: If the backend name is unknown
    """
    try:
        return BACKENDS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown capture backend: {name!r} (expected one of {sorted(BACKENDS)})"
        ) from None


def _parse_source(source: str) -> Union[str, int]:
    """Local device indices ("0", "1") are passed to OpenCV as integers."""
    return int(source) if source.isdigit() else source


class StreamSession:
    """
    One open connection to a video source.

    Owned by the ConnectionManager; read by the FrameProcessor while active.

    Attributes:
        source: URL the session was opened against
        info: Connection metadata captured at open time
        frames_read: Number of successful reads so far
    """

    def __init__(
        self,
        source: str,
        capture: VideoSource,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Wrap an already-opened capture.

        Args:
            source: URL or device the capture was opened against
            capture: Opened VideoCapture (or compatible fake)
            clock: Timestamp source for captured frames
        """
        self.source = source
        self._capture = capture
        self._clock = clock
        self._released = False
        self.frames_read: int = 0
        self.info = self._describe()

    @classmethod
    def open(
        cls,
        source: str,
        backend: str = "ffmpeg",
        capture_factory: Optional[Callable[..., Any]] = None,
    ) -> "StreamSession":
        """
        Open a capture session against source.

        Args:
            source: Camera URL, file path or device index
            backend: Backend name (see BACKENDS)
            capture_factory: Constructor for the capture (default cv2.VideoCapture)

        Returns:
            Opened StreamSession

        Raises:
            SessionOpenError: If the stream cannot be opened
        """
        factory = capture_factory or cv2.VideoCapture
        api_preference = resolve_backend(backend)

        try:
            capture = factory(_parse_source(source), api_preference)
        except cv2.error as e:
            raise SessionOpenError(f"Could not open stream {source}: {e}") from e

        if not capture.isOpened():
            capture.release()
            raise SessionOpenError(f"Could not open stream {source}")

        return cls(source, capture)

    def _describe(self) -> SessionInfo:
        try:
            backend = self._capture.getBackendName()
        except cv2.error:
            backend = "unknown"

        fps = self._capture.get(cv2.CAP_PROP_FPS)
        return SessionInfo(
            source=self.source,
            backend=backend,
            width=max(0, int(self._capture.get(cv2.CAP_PROP_FRAME_WIDTH))),
            height=max(0, int(self._capture.get(cv2.CAP_PROP_FRAME_HEIGHT))),
            fps=fps if fps and fps > 0 else 0.0,
        )

    def read(self) -> ReadResult:
        """
        Grab and decode the next frame.

        Returns:
            ReadResult.ok with the frame, or a failure variant:
                END_OF_STREAM   - grab() returned False
                TRANSIENT_FAULT - retrieve() failed or the frame was empty
                FATAL_FAULT     - OpenCV raised, or the session was released
        """
        if self._released:
            return ReadResult.fatal("Session already released")

        try:
            if not self._capture.grab():
                return ReadResult.end_of_stream("Failed to grab frame")

            ok, image = self._capture.retrieve()
            if not ok:
                return ReadResult.transient("Failed to retrieve grabbed frame")
        except cv2.error as e:
            return ReadResult.fatal(f"Capture error: {e}")

        if image is None or image.size == 0:
            return ReadResult.transient("Grabbed frame was empty")

        frame = Frame(image=image, captured_at=self._clock(), index=self.frames_read)
        self.frames_read += 1
        return ReadResult.ok(frame)

    def release(self) -> None:
        """Release the underlying capture. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self._capture.release()
        logger.debug(f"Released stream {self.source} after {self.frames_read} frames")

    @property
    def released(self) -> bool:
        return self._released

    def __enter__(self) -> "StreamSession":
        return self

    def __exit__(self, *args) -> None:
        self.release()
