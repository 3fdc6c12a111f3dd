"""
Uploaded media sources: looping video files and still images.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from models.frame import FrameData
from .base import InputKind, InputSource, ObservationConfig

VIDEO_EXTENSIONS = (".mp4", ".avi", ".mov", ".mkv", ".webm", ".m4v")


@dataclass
class UploadConfig(ObservationConfig):
    """
    Configuration for uploaded media.

    Attributes:
        path: Path to the uploaded file.
        autoplay: Start video playback as soon as the file is opened.
    """
    path: str = ""
    autoplay: bool = True


class UploadVideoSource(InputSource):
    """
    Uploaded video played in a loop.

    Frames are only available while playing; reaching the end of the file
    rewinds to the first frame.
    """

    kind = InputKind.VIDEO

    def __init__(self, config: UploadConfig):
        super().__init__(config)
        self._upload_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._size: Optional[Tuple[int, int]] = None
        self._playing = False

    @property
    def path(self) -> str:
        return self._upload_config.path

    @property
    def is_playing(self) -> bool:
        return self._playing

    def open(self) -> None:
        if self._is_open:
            return
        self._cap = cv2.VideoCapture(self.path)
        if not self._cap.isOpened():
            self._cap.release()
            self._cap = None
            raise RuntimeError(f"Failed to open uploaded video {self.path}")

        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        self._size = (width, height) if width > 0 and height > 0 else None
        self._is_open = True
        self._frame_index = 0
        self._playing = self._upload_config.autoplay
        logging.info(f"UploadVideoSource opened: path={self.path}, size={self._size}")

    def play(self) -> None:
        self._playing = True

    def pause(self) -> None:
        self._playing = False

    def is_ready(self) -> bool:
        return self._is_open and self._playing and self._cap is not None and self._size is not None

    def natural_size(self) -> Optional[Tuple[int, int]]:
        return self._size

    def capture(self) -> Optional[FrameData]:
        if not self.is_ready():
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            # Loop back to the start of the file
            self._cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
            ret, frame = self._cap.read()
            if not ret or frame is None:
                logging.warning(f"Uploaded video produced no frame: {self.path}")
                return None

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        self._playing = False
        logging.info(f"UploadVideoSource closed: path={self.path}")


class UploadImageSource(InputSource):
    """
    Uploaded still image.

    Always ready once opened and always returns the same frame, so the
    scheduler only needs to run inference on it once.
    """

    kind = InputKind.IMAGE

    def __init__(self, config: UploadConfig, image: Optional[np.ndarray] = None):
        super().__init__(config)
        self._upload_config = config
        self._image = image
        self._loaded: Optional[np.ndarray] = None

    @property
    def path(self) -> str:
        return self._upload_config.path

    def open(self) -> None:
        if self._is_open:
            return
        image = self._image if self._image is not None else cv2.imread(self.path)
        if image is None:
            raise RuntimeError(f"Failed to read uploaded image {self.path}")
        self._loaded = image
        self._is_open = True
        self._frame_index = 0
        logging.info(f"UploadImageSource opened: source_id={self.source_id}, size={self.natural_size()}")

    def is_ready(self) -> bool:
        return self._is_open and self._loaded is not None

    def natural_size(self) -> Optional[Tuple[int, int]]:
        if self._loaded is None:
            return None
        h, w = self._loaded.shape[:2]
        return (w, h)

    def capture(self) -> Optional[FrameData]:
        if not self.is_ready():
            return None
        self._frame_index += 1
        return FrameData.from_numpy(
            self._loaded,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self._loaded = None
        self._is_open = False
        logging.info(f"UploadImageSource closed: source_id={self.source_id}")


def create_upload_source(path: str, source_id: str = "upload") -> InputSource:
    """Pick the upload variant from the file extension."""
    config = UploadConfig(source_id=source_id, path=path)
    if os.path.splitext(path)[1].lower() in VIDEO_EXTENSIONS:
        return UploadVideoSource(config)
    return UploadImageSource(config)
