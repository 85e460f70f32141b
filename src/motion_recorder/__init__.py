"""
Motion Recorder
===============

Single-stream motion-detection recorder for network cameras.

The recorder connects to a camera, keeps an exponential moving-average
baseline of the scene, and writes frames to disk when the thresholded
difference against that baseline exceeds a trigger score.

Components:
    - manager: Reconnect/backoff state machine (ConnectionManager)
    - processing: Per-frame detection loop (FrameProcessor)
    - detection: Baseline model, scoring and save policy
    - stream: OpenCV capture session wrapper
    - config: Settings loading and logging setup

Example:
    from motion_recorder.config import load_config
    from motion_recorder.manager import ConnectionManager

    settings = load_config()
    ConnectionManager("rtsp://camera/stream", settings).run()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
