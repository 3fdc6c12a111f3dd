"""
OpenCV-based live input source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- RTSP/IP cameras (device_id as str URL)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

import cv2

from models.frame import FrameData
from .base import InputKind, InputSource, ObservationConfig


@dataclass
class LiveSourceConfig(ObservationConfig):
    """
    Configuration for live capture devices.

    Attributes:
        device_id: Camera index (int) or stream URL (str).
        buffer_size: OpenCV capture buffer size (reduces latency).
        max_retries: Maximum attempts when opening the device.
        max_read_failures: Consecutive failed reads before reinitializing.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    max_read_failures: int = 3

    @classmethod
    def from_dict(cls, live_cfg: Dict[str, Any], source_id: str = "live") -> "LiveSourceConfig":
        """Create from the ``live`` section of config.yaml."""
        return cls(
            source_id=source_id,
            device_id=live_cfg.get("device_id", 0),
            buffer_size=live_cfg.get("buffer_size", 1),
            max_retries=live_cfg.get("max_retries", 3),
            max_read_failures=live_cfg.get("max_read_failures", 3),
        )


class LiveSource(InputSource):
    """
    Live capture device wrapped around cv2.VideoCapture.

    The source is ready once the device is open and reports a frame size,
    the equivalent of a video element that has enough data to draw.
    """

    kind = InputKind.LIVE

    def __init__(self, config: LiveSourceConfig):
        super().__init__(config)
        self._live_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._size: Optional[Tuple[int, int]] = None
        self._consecutive_failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self._live_config.device_id

    @property
    def live_config(self) -> LiveSourceConfig:
        return self._live_config

    def open(self) -> None:
        if self._is_open:
            return
        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0
        logging.info(f"LiveSource opened: source_id={self.source_id}, size={self._size}")

    def _initialize(self, retry_count: int = 0, attempts: Optional[int] = None) -> None:
        """
        Initialize or reinitialize the capture device.

        Retries back off exponentially; attempts=1 tries once without sleeping.
        """
        if attempts is None:
            attempts = self._live_config.max_retries

        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/{attempts})"
                f" after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)
        if not self._cap.isOpened():
            if retry_count < attempts - 1:
                logging.warning(f"Failed to open live device {self.device_id}, retrying...")
                return self._initialize(retry_count + 1, attempts)
            raise RuntimeError(
                f"Failed to open live device {self.device_id} after {attempts} attempts"
            )

        self._cap.set(cv2.CAP_PROP_BUFFERSIZE, self._live_config.buffer_size)
        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._size = (width, height) if width > 0 and height > 0 else None
        self._consecutive_failures = 0

    def is_ready(self) -> bool:
        return (
            self._is_open
            and self._cap is not None
            and self._cap.isOpened()
            and self._size is not None
        )

    def natural_size(self) -> Optional[Tuple[int, int]]:
        return self._size

    def capture(self) -> Optional[FrameData]:
        if not self.is_ready():
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            self._consecutive_failures += 1
            logging.warning(f"Failed to read live frame (failures: {self._consecutive_failures})")
            if self._consecutive_failures >= self._live_config.max_read_failures:
                # Single attempt: capture runs on the inference path and must not sleep
                try:
                    self._initialize(attempts=1)
                except RuntimeError:
                    logging.error("Live device reinitialization failed")
                    self._size = None
            return None

        self._consecutive_failures = 0
        self._frame_index += 1
        frame_data = FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )
        self._size = frame_data.size
        return frame_data

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"LiveSource closed: source_id={self.source_id}")
