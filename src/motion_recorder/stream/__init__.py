"""
Stream Module
=============

Capture session and frame types.

This module provides the ingestion layer for the motion recorder:
    - Frame: Captured colour frame with timestamp
    - ReadResult / ReadStatus: Explicit outcome of every read
    - StreamSession: cv2.VideoCapture wrapper (open, read, release)

Example:
    from motion_recorder.stream import StreamSession

    session = StreamSession.open("rtsp://camera/stream", backend="ffmpeg")
    print(session.info.describe())
    result = session.read()
"""

from motion_recorder.stream.frame import Frame, ReadResult, ReadStatus
from motion_recorder.stream.session import SessionOpenError, StreamSession, VideoSource


__all__ = [
    "Frame",
    "ReadResult",
    "ReadStatus",
    "SessionOpenError",
    "StreamSession",
    "VideoSource",
]
