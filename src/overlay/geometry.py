"""
Model-space to display-space box mapping under "cover" scaling.

The source fills its container and overflow is cropped evenly on both
sides, so a box is scaled by the larger of the two axis ratios and shifted
by the (negative) centering offset. Results are clamped to stay a fixed
margin inside the container.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from models.detection import BoundingBox, Detection
from models.display import DisplayBox
from models.errors import GeometryUnavailable

DEFAULT_MARGIN = 10.0
DEFAULT_LABEL_THRESHOLD = 40.0

Size = Tuple[float, float]


@dataclass(frozen=True)
class CoverTransform:
    """Scale and centering offsets for one (source, container) pair."""
    scale: float
    offset_x: float
    offset_y: float
    container_w: float
    container_h: float

    def apply(self, bbox: BoundingBox) -> Tuple[float, float, float, float]:
        """Return the unclamped (left, top, width, height) in container pixels."""
        return (
            bbox.x * self.scale + self.offset_x,
            bbox.y * self.scale + self.offset_y,
            bbox.width * self.scale,
            bbox.height * self.scale,
        )

    def place(
        self,
        bbox: BoundingBox,
        margin: float = DEFAULT_MARGIN,
        label_threshold: float = DEFAULT_LABEL_THRESHOLD,
    ) -> DisplayBox:
        """Apply the transform and clamp the result inside the container margin."""
        raw_left, raw_top, width, height = self.apply(bbox)
        left = _clamp(raw_left, margin, self.container_w - width - margin)
        top = _clamp(raw_top, margin, self.container_h - height - margin)

        return DisplayBox(
            left=left,
            top=top,
            width=width,
            height=height,
            max_width=max(0.0, self.container_w - left - margin),
            max_height=max(0.0, self.container_h - top - margin),
            label_above=top >= label_threshold,
        )


def _require_size(size: Optional[Sequence[float]], what: str) -> Size:
    if size is None or len(size) != 2:
        raise GeometryUnavailable(f"{what} size unavailable")
    w, h = size
    if w is None or h is None or not (math.isfinite(w) and math.isfinite(h)) or w <= 0 or h <= 0:
        raise GeometryUnavailable(f"{what} size unavailable: {w}x{h}")
    return float(w), float(h)


def cover_transform(source_size: Optional[Sequence[float]], container_size: Optional[Sequence[float]]) -> CoverTransform:
    """
    Compute the cover-fit transform.

    Raises:
        GeometryUnavailable: If either size is missing or non-positive.
    """
    source_w, source_h = _require_size(source_size, "source")
    container_w, container_h = _require_size(container_size, "container")

    scale = max(container_w / source_w, container_h / source_h)
    displayed_w = source_w * scale
    displayed_h = source_h * scale
    return CoverTransform(
        scale=scale,
        offset_x=(container_w - displayed_w) / 2,
        offset_y=(container_h - displayed_h) / 2,
        container_w=container_w,
        container_h=container_h,
    )


def _clamp(value: float, low: float, high: float) -> float:
    # Lower bound wins when the box is larger than the container
    return max(low, min(value, high))


def map_to_display(
    bbox: BoundingBox,
    source_size: Optional[Sequence[float]],
    container_size: Optional[Sequence[float]],
    margin: float = DEFAULT_MARGIN,
    label_threshold: float = DEFAULT_LABEL_THRESHOLD,
) -> DisplayBox:
    """
    Map a model-space box into the display container.

    Args:
        bbox: Box in source (model-space) pixels.
        source_size: Natural (width, height) of the source.
        container_size: (width, height) of the display container.
        margin: Minimum distance kept between the box and the container edge.
        label_threshold: Boxes whose clamped top is closer than this to the
            container top get their label inside the box.

    Raises:
        GeometryUnavailable: If either size is missing or non-positive.
    """
    return cover_transform(source_size, container_size).place(bbox, margin, label_threshold)


def map_detections(
    detections: Sequence[Detection],
    source_size: Optional[Sequence[float]],
    container_size: Optional[Sequence[float]],
    margin: float = DEFAULT_MARGIN,
    label_threshold: float = DEFAULT_LABEL_THRESHOLD,
) -> List[Tuple[Detection, DisplayBox]]:
    """
    Map every detection of a frame through one shared transform.

    When the geometry is unavailable the detections are only dropped for this
    frame; the next frame maps them again with whatever geometry it has.
    """
    if not detections:
        return []
    try:
        transform = cover_transform(source_size, container_size)
    except GeometryUnavailable as e:
        logging.debug(f"Skipping {len(detections)} detections this frame: {e}")
        return []
    return [(det, transform.place(det.bbox, margin, label_threshold)) for det in detections]
