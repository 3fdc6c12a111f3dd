"""
Overlay layer: maps model-space detections into display space and draws them.
"""

from .geometry import CoverTransform, cover_transform, map_detections, map_to_display

__all__ = [
    "CoverTransform",
    "cover_transform",
    "map_detections",
    "map_to_display",
]
