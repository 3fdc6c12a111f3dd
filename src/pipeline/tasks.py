"""
Inference tasks run by the frame scheduler.

A task turns one captured frame into one result. The scheduler never runs
two tasks at once, so tasks need no locking of their own.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol

from classifier.knn import OnlineClassifier
from inference.backend import Detector, Embedder, call_model
from models.config import DetectionSettings
from models.detection import Detection
from models.frame import FrameData
from models.prediction import Prediction


class InferenceTask(Protocol):
    async def run(self, frame: FrameData, settings: DetectionSettings) -> Any:
        ...

    def empty_result(self) -> Any:
        ...


class DetectionTask:
    """Run the detection model on a frame."""

    def __init__(self, detector: Detector):
        self.detector = detector

    async def run(self, frame: FrameData, settings: DetectionSettings) -> List[Detection]:
        detections = await call_model(
            self.detector.detect,
            frame.frame,
            settings.max_objects,
            settings.min_confidence,
            iou_threshold=settings.iou_threshold,
        )
        return list(detections)

    def empty_result(self) -> List[Detection]:
        return []


class ClassificationTask:
    """
    Embed a frame and score it against the classifier.

    The query vector is released when scoring finishes, on success and on
    failure alike.
    """

    def __init__(self, embedder: Embedder, classifier: OnlineClassifier):
        self.embedder = embedder
        self.classifier = classifier

    async def run(self, frame: FrameData, settings: DetectionSettings) -> Optional[Prediction]:
        if self.classifier.num_classes == 0:
            return None
        vector = await call_model(self.embedder.embed, frame.frame)
        with vector:
            return self.classifier.predict(vector)

    def empty_result(self) -> Optional[Prediction]:
        return None
