"""
InputSource interface for live and uploaded visual sources.

This defines the contract the frame scheduler relies on, so it can pull
frames from any of:
- a live capture device (webcam, RTSP stream)
- an uploaded video file (looping playback with play/pause)
- an uploaded still image

Every source reports its kind, whether a frame can be captured right now,
and its natural pixel size.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from models.frame import FrameData


class InputKind(str, Enum):
    """Tag of the input source variant."""
    LIVE = "live"
    VIDEO = "video"
    IMAGE = "image"


@dataclass
class ObservationConfig:
    """
    Base configuration for input sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "webcam", "upload").
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    metadata: Dict[str, Any] = field(default_factory=dict)


class InputSource(ABC):
    """
    Abstract base class for input sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source
        3. Poll is_ready() and call capture() when it is
        4. Call close() to release resources

    Can also be used as a context manager:
        with LiveSource(config) as source:
            if source.is_ready():
                frame_data = source.capture()
    """

    kind: InputKind

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source is currently open."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames captured since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Open/initialize the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the source. Safe to call multiple times."""

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether capture() can deliver a frame right now."""

    @abstractmethod
    def natural_size(self) -> Optional[Tuple[int, int]]:
        """Natural (width, height) in pixels, or None while unknown."""

    @abstractmethod
    def capture(self) -> Optional[FrameData]:
        """
        Capture the current frame.

        Returns:
            FrameData, or None if no frame could be read.
        """

    def __enter__(self) -> "InputSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_id={self.source_id!r}, open={self._is_open})"
