"""
Detection models for object detection results.

Boxes are kept in model space as (x, y, width, height), the layout the
detection model reports and the coordinate mapper consumes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in model-space pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width.
        height: Box height.
    """
    x: float
    y: float
    width: float
    height: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    A single detection produced by the detection model for one frame.

    Attributes:
        class_name: Human-readable class label.
        confidence: Detection confidence score (0-1).
        bbox: Bounding box in model-space pixels.
    """
    class_name: str
    confidence: float
    bbox: BoundingBox

    @property
    def label(self) -> str:
        """Overlay caption, e.g. ``PERSON | 87%``."""
        return f"{self.class_name.upper()} | {round(self.confidence * 100)}%"

    @classmethod
    def from_xywh(
        cls,
        class_name: str,
        confidence: float,
        x: float,
        y: float,
        w: float,
        h: float,
    ) -> "Detection":
        return cls(
            class_name=class_name,
            confidence=confidence,
            bbox=BoundingBox(x=x, y=y, width=w, height=h),
        )
