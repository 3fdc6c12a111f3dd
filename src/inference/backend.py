"""
Inference backend interfaces.

Detectors return model-space detections in the original frame coordinate
system. Embedders return an owned FeatureVector per frame.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, List, Optional, Protocol

import numpy as np

from models.detection import Detection
from models.features import FeatureVector


class Detector(Protocol):
    def detect(
        self,
        frame: np.ndarray,
        max_results: int,
        min_confidence: float,
        iou_threshold: Optional[float] = None,
    ) -> List[Detection]:
        ...


class Embedder(Protocol):
    def embed(self, frame: np.ndarray) -> FeatureVector:
        ...


async def call_model(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """
    Invoke a model method from the event loop.

    Coroutine functions are awaited directly; blocking functions run in a
    worker thread so the tick loop keeps running while the model works.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)
    return await asyncio.to_thread(fn, *args, **kwargs)
