"""
Teachable classifier: declared classes, exemplar store and nearest-exemplar prediction.
"""

from .registry import ClassInfo, ClassRegistry, Readiness
from .store import ExemplarStore
from .knn import OnlineClassifier
from .session import TeachingSession

__all__ = [
    "ClassInfo",
    "ClassRegistry",
    "Readiness",
    "ExemplarStore",
    "OnlineClassifier",
    "TeachingSession",
]
