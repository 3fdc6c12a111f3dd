"""
Teaching session: capture labeled examples from the live source.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from inference.backend import Embedder, call_model
from observation.base import InputSource
from .knn import OnlineClassifier
from .registry import ClassInfo


class TeachingSession:
    """
    Glue between the live source, the embedding model and the classifier.

    Captures are user-triggered; the background prediction loop never
    mutates the store. The lock is the scheduler's, so a capture waits for
    an in-flight prediction instead of reading the device or running the
    model alongside it.
    """

    def __init__(
        self,
        source: InputSource,
        embedder: Embedder,
        classifier: OnlineClassifier,
        lock: Optional[asyncio.Lock] = None,
    ):
        self.source = source
        self.embedder = embedder
        self.classifier = classifier
        self.lock = lock if lock is not None else asyncio.Lock()

    @property
    def registry(self):
        return self.classifier.store.registry

    def add_class(self, name=None) -> int:
        return self.registry.add_class(name)

    async def capture_example(self, class_id: int) -> bool:
        """
        Capture the current frame as an example of class_id.

        Returns:
            True if an example was added, False if the source had no frame.
        """
        if class_id not in self.registry:
            raise KeyError(f"Unknown class id {class_id}")

        async with self.lock:
            if not self.source.is_ready():
                logging.info("Live source not ready, example not captured")
                return False

            frame_data = await asyncio.to_thread(self.source.capture)
            if frame_data is None:
                logging.warning("Live source returned no frame, example not captured")
                return False

            vector = await call_model(self.embedder.embed, frame_data.frame)

        try:
            count = self.classifier.add_example(class_id, vector)
        finally:
            # No-op once the store owns the vector
            vector.release()
        logging.info(f"Captured example for {self.registry.name(class_id)} (count={count})")
        return True

    def reset(self) -> None:
        """Clear every class's examples."""
        self.classifier.clear_all()

    def class_status(self) -> List[ClassInfo]:
        return self.registry.describe(self.classifier.store.counts())
