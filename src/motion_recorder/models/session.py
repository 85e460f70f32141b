"""
Session Models
==============

Metadata and outcome types for one capture session.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SessionEnd(str, Enum):
    """
    Why a processing session stopped.

    Attributes:
        USER_EXIT: Exit signal observed, stop retrying
        END_OF_STREAM: Grab returned no frame
        TRANSIENT_FAULT: Retrieve failed or frame was empty
        FATAL_FAULT: Capture library raised while reading
    """

    USER_EXIT = "USER_EXIT"
    END_OF_STREAM = "END_OF_STREAM"
    TRANSIENT_FAULT = "TRANSIENT_FAULT"
    FATAL_FAULT = "FATAL_FAULT"


class SessionInfo(BaseModel):
    """
    Connection metadata reported when a stream opens.

    Attributes:
        source: URL or path the session was opened against
        backend: Backend name reported by the capture library
        width: Frame width in pixels
        height: Frame height in pixels
        fps: Declared frame rate (0 when unknown)
    """

    source: str = Field(..., description="Video source identifier")
    backend: str = Field(default="unknown", description="Capture backend name")
    width: int = Field(default=0, ge=0, description="Frame width in pixels")
    height: int = Field(default=0, ge=0, description="Frame height in pixels")
    fps: float = Field(default=0.0, ge=0, description="Declared frames per second")

    def describe(self) -> str:
        """One-line summary used in connect logs."""
        return f"{self.backend} {self.width}x{self.height} ({self.fps:g} fps)"
