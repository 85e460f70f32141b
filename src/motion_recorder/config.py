"""
Motion Recorder Configuration
=============================

This module handles configuration loading for the motion recorder.

Configuration Sources (in order of precedence):
    1. Command-line flags (applied by main.py)
    2. Environment variables
    3. motion_recorder.yaml / config.yaml file
    4. Default values (lowest priority)

Environment Variable Mapping:
    MOTION_SOURCE_URL      -> stream.url
    MOTION_BACKEND         -> stream.backend
    MOTION_MAX_RETRIES     -> retry.max_retries
    MOTION_MIN_WAIT        -> retry.minimal_wait_seconds
    MOTION_MAX_WAIT        -> retry.max_wait_seconds
    MOTION_SCORE_THRESHOLD -> detection.score_threshold
    MOTION_PIXEL_THRESHOLD -> detection.pixel_threshold
    MOTION_BLEND_ALPHA     -> detection.blend_alpha
    MOTION_SAVE_COUNTDOWN  -> detection.save_countdown
    MOTION_IMAGES_DIR      -> output.images_dir
    MOTION_SHOW_PREVIEW    -> output.show_preview
    MOTION_LOG_LEVEL       -> logging.level

Example:
    from motion_recorder.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.retry.max_retries)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""
    pass


# =============================================================================
# Configuration Models
# =============================================================================

class StreamConfig(BaseModel):
    """Camera source configuration."""

    url: Optional[str] = Field(
        default=None,
        description="Video source URL (rtsp://, http://, file path)",
    )
    backend: str = Field(
        default="ffmpeg",
        pattern="^(any|ffmpeg|gstreamer)$",
        description="Capture backend: 'ffmpeg', 'gstreamer' or 'any'",
    )


class RetryConfig(BaseModel):
    """Reconnection and backoff configuration."""

    max_retries: int = Field(
        default=10,
        ge=1,
        description="Connection attempts before giving up",
    )
    minimal_wait_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Initial backoff delay; doubles after every failure",
    )
    max_wait_seconds: Optional[float] = Field(
        default=None,
        ge=0,
        description="Backoff ceiling in seconds (None = uncapped)",
    )


class DetectionConfig(BaseModel):
    """Motion detection parameters."""

    blend_alpha: float = Field(
        default=0.5,
        ge=0,
        le=1.0,
        description="Weight of the previous baseline when blending in a new frame",
    )
    pixel_threshold: int = Field(
        default=30,
        ge=0,
        le=255,
        description="Per-pixel difference above which a pixel counts as changed",
    )
    score_threshold: float = Field(
        default=0.1,
        ge=0,
        description="Difference score above which a detection is triggered",
    )
    save_countdown: int = Field(
        default=10,
        ge=1,
        description="Frames saved per trigger (trigger frame included)",
    )


class OutputConfig(BaseModel):
    """Frame persistence and preview configuration."""

    images_dir: str = Field(
        default="images",
        description="Directory that receives detection snapshots",
    )
    create_dir: bool = Field(
        default=False,
        description="Create images_dir on startup if it is missing",
    )
    show_preview: bool = Field(
        default=False,
        description="Show captured frames in an OpenCV window",
    )
    key_poll_ms: int = Field(
        default=30,
        ge=1,
        description="Key poll timeout per frame in milliseconds",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the motion recorder.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    stream: StreamConfig = Field(default_factory=StreamConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def find_config_file(config_path: Optional[str] = None) -> Optional[str]:
    """
    Resolve which YAML file load_config() reads.

    An explicit path must exist. Without one, motion_recorder.yaml and then
    config.yaml are looked up in the working directory.

    Raises:
        ConfigError: If an explicit config_path does not exist
    """
    if config_path is not None:
        if not Path(config_path).exists():
            raise ConfigError(f"Config file not found: {config_path}")
        return config_path

    for path in (Path("motion_recorder.yaml"), Path("config.yaml")):
        if path.exists():
            return str(path)
    return None


def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to a YAML file. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        ConfigError: If an explicit config_path does not exist or is not valid YAML
        pydantic.ValidationError: If a value is out of range
    """
    config_path = find_config_file(config_path)

    config_data = {}
    if config_path:
        logger.debug(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
    else:
        logger.debug("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """
    Apply environment variable overrides to config data.

    Values stay strings; Settings.model_validate coerces them, so a
    malformed number surfaces as a ValidationError.
    """

    # Stream settings
    if env_url := os.environ.get("MOTION_SOURCE_URL"):
        config_data.setdefault("stream", {})["url"] = env_url
    if env_backend := os.environ.get("MOTION_BACKEND"):
        config_data.setdefault("stream", {})["backend"] = env_backend

    # Retry settings
    if env_retries := os.environ.get("MOTION_MAX_RETRIES"):
        config_data.setdefault("retry", {})["max_retries"] = env_retries
    if env_min_wait := os.environ.get("MOTION_MIN_WAIT"):
        config_data.setdefault("retry", {})["minimal_wait_seconds"] = env_min_wait
    if env_max_wait := os.environ.get("MOTION_MAX_WAIT"):
        config_data.setdefault("retry", {})["max_wait_seconds"] = env_max_wait

    # Detection settings
    if env_score := os.environ.get("MOTION_SCORE_THRESHOLD"):
        config_data.setdefault("detection", {})["score_threshold"] = env_score
    if env_pixel := os.environ.get("MOTION_PIXEL_THRESHOLD"):
        config_data.setdefault("detection", {})["pixel_threshold"] = env_pixel
    if env_alpha := os.environ.get("MOTION_BLEND_ALPHA"):
        config_data.setdefault("detection", {})["blend_alpha"] = env_alpha
    if env_countdown := os.environ.get("MOTION_SAVE_COUNTDOWN"):
        config_data.setdefault("detection", {})["save_countdown"] = env_countdown

    # Output settings
    if env_dir := os.environ.get("MOTION_IMAGES_DIR"):
        config_data.setdefault("output", {})["images_dir"] = env_dir
    if env_preview := os.environ.get("MOTION_SHOW_PREVIEW"):
        config_data.setdefault("output", {})["show_preview"] = env_preview

    # Logging settings
    if env_log := os.environ.get("MOTION_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure root logging; the json format emits one object per record."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = (
            '{"ts": "%(asctime)s.%(msecs)03d", "severity": "%(levelname)s", '
            '"logger": "%(name)s", "event": "%(message)s"}'
        )
    else:
        log_format = "%(asctime)s.%(msecs)03d %(levelname)-7s [%(name)s] %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
