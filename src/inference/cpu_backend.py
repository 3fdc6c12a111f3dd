"""
Ultralytics CPU inference backends.

UltralyticsDetector wraps a YOLO detection model; UltralyticsEmbedder uses a
YOLO classification model's penultimate features as embeddings for the
teachable classifier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from models.detection import BoundingBox, Detection
from models.errors import InferenceFailure, ModelUnavailable
from models.features import FeatureVector
from .backend import Detector, Embedder


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    iou_threshold: float = 0.3
    class_name_overrides: Optional[Dict[int, str]] = None


def _to_numpy(value: Any) -> np.ndarray:
    return value.cpu().numpy() if hasattr(value, "cpu") else np.asarray(value)


def _load_yolo(model: str) -> Any:
    try:
        from ultralytics import YOLO  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ModelUnavailable(
            "Ultralytics is not installed. Install with `pip install ultralytics`."
        ) from e

    try:
        loaded = YOLO(model)
    except Exception as e:
        raise ModelUnavailable(f"Failed to load model {model}: {e}") from e
    logging.info(f"Loaded model {model}")
    return loaded


class UltralyticsDetector(Detector):
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self._model = _load_yolo(cfg.model)

    def detect(
        self,
        frame: np.ndarray,
        max_results: int,
        min_confidence: float,
        iou_threshold: Optional[float] = None,
    ) -> List[Detection]:
        try:
            results = self._model.predict(
                source=frame,
                conf=min_confidence,
                iou=iou_threshold if iou_threshold is not None else self.cfg.iou_threshold,
                max_det=max_results,
                verbose=False,
            )
        except Exception as e:
            raise InferenceFailure(f"Detection failed: {e}") from e
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = _to_numpy(boxes.xyxy)
        conf = _to_numpy(boxes.conf)
        cls = _to_numpy(boxes.cls)

        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            if float(c) < min_confidence:
                continue
            class_id = int(k)
            class_name = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(
                Detection(
                    class_name=class_name,
                    confidence=float(c),
                    bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                )
            )

        return out[:max_results]


class UltralyticsEmbedder(Embedder):
    def __init__(self, model: str):
        self.model_name = model
        self._model = _load_yolo(model)

    def embed(self, frame: np.ndarray) -> FeatureVector:
        try:
            embeddings = self._model.embed(source=frame, verbose=False)
        except Exception as e:
            raise InferenceFailure(f"Embedding failed: {e}") from e
        if not embeddings:
            raise InferenceFailure("Embedding model returned no features")
        return FeatureVector(_to_numpy(embeddings[0]))
