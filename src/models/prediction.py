"""
Classifier prediction result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class Prediction:
    """
    Confidence distribution over the classes that hold exemplars.

    Attributes:
        class_id: Winning class.
        confidences: class_id -> confidence, summing to 1.0.
    """
    class_id: int
    confidences: Dict[int, float] = field(default_factory=dict)

    @property
    def confidence(self) -> float:
        return self.confidences.get(self.class_id, 0.0)

    def ranked(self, min_confidence: float = 0.05) -> List[Tuple[int, float]]:
        """Classes above the display floor, most confident first."""
        items = [(cid, conf) for cid, conf in self.confidences.items() if conf > min_confidence]
        return sorted(items, key=lambda item: item[1], reverse=True)
