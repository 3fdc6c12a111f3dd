"""
Display-space box produced by the coordinate mapper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class DisplayBox:
    """
    A detection box positioned inside the display container.

    Attributes:
        left: Clamped left edge in container pixels.
        top: Clamped top edge in container pixels.
        width: Scaled box width.
        height: Scaled box height.
        max_width: Widest the box may render without leaving the margin.
        max_height: Tallest the box may render without leaving the margin.
        label_above: Place the caption above the box (False: inside its top edge).
    """
    left: float
    top: float
    width: float
    height: float
    max_width: float
    max_height: float
    label_above: bool = True

    @property
    def effective_width(self) -> float:
        return min(self.width, self.max_width)

    @property
    def effective_height(self) -> float:
        return min(self.height, self.max_height)

    def as_int_rect(self) -> Tuple[int, int, int, int]:
        """Return the rendered (x1, y1, x2, y2) rectangle as integers."""
        return (
            int(self.left),
            int(self.top),
            int(self.left + self.effective_width),
            int(self.top + self.effective_height),
        )
