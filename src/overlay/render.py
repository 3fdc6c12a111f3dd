"""
OpenCV drawing helpers for the preview window.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.detection import Detection
from models.display import DisplayBox
from models.prediction import Prediction
from .geometry import cover_transform

# Colors (BGR)
COLOR_BOX = (246, 130, 59)  # Blue
COLOR_LABEL_TEXT = (255, 255, 255)
COLOR_HUD = (128, 222, 74)  # Green
FONT = cv2.FONT_HERSHEY_SIMPLEX


def fit_cover(frame: np.ndarray, container_size: Sequence[int]) -> np.ndarray:
    """Scale and center-crop a frame so it fills the container."""
    h, w = frame.shape[:2]
    container_w, container_h = int(container_size[0]), int(container_size[1])
    t = cover_transform((w, h), (container_w, container_h))
    scaled_w = max(container_w, int(round(w * t.scale)))
    scaled_h = max(container_h, int(round(h * t.scale)))
    scaled = cv2.resize(frame, (scaled_w, scaled_h))
    x0 = (scaled_w - container_w) // 2
    y0 = (scaled_h - container_h) // 2
    return scaled[y0:y0 + container_h, x0:x0 + container_w].copy()


def draw_detections(canvas: np.ndarray, mapped: List[Tuple[Detection, DisplayBox]]) -> np.ndarray:
    """Draw mapped detection boxes with their captions."""
    for det, box in mapped:
        x1, y1, x2, y2 = box.as_int_rect()
        cv2.rectangle(canvas, (x1, y1), (x2, y2), COLOR_BOX, 2)

        label = det.label
        (tw, th), _ = cv2.getTextSize(label, FONT, 0.5, 1)
        if box.label_above:
            ly1, ly2 = y1 - th - 6, y1
        else:
            ly1, ly2 = y1 + 2, y1 + th + 8
        cv2.rectangle(canvas, (x1, ly1), (x1 + tw + 4, ly2), COLOR_BOX, -1)
        cv2.putText(canvas, label, (x1 + 2, ly2 - 4), FONT, 0.5, COLOR_LABEL_TEXT, 1)
    return canvas


def draw_hud(canvas: np.ndarray, fps: int, object_count: Optional[int] = None, paused: bool = False) -> np.ndarray:
    """Draw the throughput / object count readout in the top-right corner."""
    lines = [f"FPS {fps}"]
    if object_count is not None:
        lines.append(f"OBJECTS {object_count}")
    if paused:
        lines.append("PAUSED")
    x = canvas.shape[1] - 160
    for i, text in enumerate(lines):
        cv2.putText(canvas, text, (x, 30 + i * 24), FONT, 0.6, COLOR_HUD, 2)
    return canvas


def draw_prediction(
    canvas: np.ndarray,
    prediction: Optional[Prediction],
    class_names: Dict[int, str],
    display_floor: float = 0.05,
) -> np.ndarray:
    """Draw the ranked confidence bars for the classifier prediction."""
    if prediction is None:
        cv2.putText(canvas, "Waiting for prediction data...", (16, 30), FONT, 0.6, COLOR_HUD, 1)
        return canvas

    for i, (class_id, confidence) in enumerate(prediction.ranked(display_floor)):
        y = 20 + i * 30
        bar = int(200 * confidence)
        cv2.rectangle(canvas, (16, y), (16 + bar, y + 22), COLOR_BOX, -1)
        name = class_names.get(class_id, f"Class {class_id}")
        cv2.putText(canvas, f"{name} {confidence * 100:.0f}%", (20, y + 16), FONT, 0.5, COLOR_LABEL_TEXT, 1)
    return canvas
