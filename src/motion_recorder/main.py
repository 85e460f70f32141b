"""
Motion Recorder Main Application
================================

Command-line entry point.

Usage:
    motion-recorder <url to camera>
    motion-recorder rtsp://192.168.1.20/stream --show-preview
    MOTION_MAX_RETRIES=3 python -m motion_recorder.main rtsp://camera/stream

Exit status:
    0 - normal termination (user exit or retries exhausted)
    1 - usage or configuration error
"""

import argparse
import logging
import os
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from motion_recorder.config import ConfigError, Settings, find_config_file, load_config, setup_logging
from motion_recorder.manager import ConnectionManager
from motion_recorder.processing.exit_signal import KeyPollExitSignal
from motion_recorder.processing.frame_writer import FrameWriter


logger = logging.getLogger(__name__)


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="motion-recorder",
        description="Record frames from a network camera when motion is detected",
    )
    parser.add_argument("url", nargs="?", help="URL to camera")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--images-dir", help="Directory for detection snapshots")
    parser.add_argument("--show-preview", action="store_true", help="Show frames in a window")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    return parser


def _apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> None:
    if args.url:
        settings.stream.url = args.url
    if args.images_dir:
        settings.output.images_dir = args.images_dir
    if args.show_preview:
        settings.output.show_preview = True
    if args.log_level:
        settings.logging.level = args.log_level


def _install_signal_handlers(exit_signal: KeyPollExitSignal) -> None:
    """First SIGINT/SIGTERM asks the loop to stop; a second one interrupts immediately."""

    def _handle(signum, frame):
        if exit_signal.cancelled:
            raise KeyboardInterrupt
        logger.info(f"Received {signal.Signals(signum).name}, stopping after current frame...")
        exit_signal.cancel()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the motion recorder."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config_path = find_config_file(args.config)
        settings = load_config(config_path)
    except (ConfigError, ValidationError) as e:
        if not (args.url or os.environ.get("MOTION_SOURCE_URL")):
            parser.error("the following arguments are required: url")
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _apply_cli_overrides(settings, args)
    if not settings.stream.url:
        parser.error("the following arguments are required: url")

    setup_logging(settings)
    if config_path:
        logger.info(f"Loaded config from: {config_path}")

    if settings.output.create_dir:
        FrameWriter(settings.output.images_dir).ensure_directory()

    exit_signal = KeyPollExitSignal(settings.output.key_poll_ms)
    _install_signal_handlers(exit_signal)

    manager = ConnectionManager(settings.stream.url, settings, exit_signal=exit_signal)
    try:
        manager.run()
    except KeyboardInterrupt:
        logger.info("Interrupted")

    return 0


if __name__ == "__main__":
    sys.exit(main())
