"""
Results sinks: where the scheduler delivers results and throughput.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Detection
from models.display import DisplayBox
from models.frame import FrameData
from models.prediction import Prediction
from overlay.geometry import DEFAULT_LABEL_THRESHOLD, DEFAULT_MARGIN, map_detections
from overlay import render


class ResultsSink(Protocol):
    def on_result(self, result: Any, frame: FrameData) -> None:
        ...

    def on_throughput(self, rate: int) -> None:
        ...

    def clear(self) -> None:
        ...


class LatestResults:
    """
    In-memory snapshot of the most recent result.

    Each result replaces the previous one; nothing is merged across frames.
    """

    def __init__(self) -> None:
        self.result: Any = None
        self.source_size: Optional[Tuple[int, int]] = None
        self.fps: int = 0
        self.updated_at: Optional[float] = None
        self.result_count = 0

    def on_result(self, result: Any, frame: FrameData) -> None:
        self.result = result
        self.source_size = frame.size
        self.updated_at = time.time()
        self.result_count += 1

    def on_throughput(self, rate: int) -> None:
        self.fps = rate

    def clear(self) -> None:
        self.result = None
        self.source_size = None
        self.updated_at = None

    @property
    def detections(self) -> List[Detection]:
        return list(self.result) if isinstance(self.result, list) else []

    @property
    def prediction(self) -> Optional[Prediction]:
        return self.result if isinstance(self.result, Prediction) else None

    def display_boxes(
        self,
        container_size: Sequence[float],
        margin: float = DEFAULT_MARGIN,
        label_threshold: float = DEFAULT_LABEL_THRESHOLD,
    ) -> List[Tuple[Detection, DisplayBox]]:
        """Current detections mapped into a container of the given size."""
        return map_detections(self.detections, self.source_size, container_size, margin, label_threshold)


class PreviewWindow(LatestResults):
    """
    OpenCV preview window drawing the latest results over the frame.

    Rendering happens in render(), called from the event loop thread.
    """

    def __init__(
        self,
        title: str,
        container_size: Sequence[int],
        margin: float = DEFAULT_MARGIN,
        label_threshold: float = DEFAULT_LABEL_THRESHOLD,
        class_names: Optional[Dict[int, str]] = None,
        display_floor: float = 0.05,
    ):
        super().__init__()
        self.title = title
        self.container_size = (int(container_size[0]), int(container_size[1]))
        self.margin = margin
        self.label_threshold = label_threshold
        self.class_names = class_names
        self.display_floor = display_floor
        self._frame: Optional[np.ndarray] = None

    def on_result(self, result: Any, frame: FrameData) -> None:
        super().on_result(result, frame)
        self._frame = frame.frame

    def clear(self) -> None:
        super().clear()
        self._frame = None

    def render(self, paused: bool = False) -> np.ndarray:
        w, h = self.container_size
        if self._frame is None:
            canvas = np.zeros((h, w, 3), dtype=np.uint8)
        else:
            canvas = render.fit_cover(self._frame, self.container_size)

        if self.class_names is not None:
            render.draw_prediction(canvas, self.prediction, self.class_names, self.display_floor)
            render.draw_hud(canvas, self.fps, paused=paused)
        else:
            mapped = self.display_boxes(self.container_size, self.margin, self.label_threshold)
            render.draw_detections(canvas, mapped)
            render.draw_hud(canvas, self.fps, object_count=len(self.detections), paused=paused)

        cv2.imshow(self.title, canvas)
        return canvas

    def poll_key(self) -> int:
        return cv2.waitKey(1) & 0xFF

    def close(self) -> None:
        try:
            cv2.destroyWindow(self.title)
        except cv2.error as e:
            logging.debug(f"Preview window already closed: {e}")
