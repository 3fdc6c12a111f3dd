"""
Nearest-exemplar classifier over the exemplar store.

Similarity is cosine similarity between L2-normalized embeddings. Each class
is scored by its single most similar exemplar, mapped from [-1, 1] to [0, 1];
the scores are normalized into a distribution. Scoring by the best match
keeps a class with few exemplars from being outvoted by a larger class whose
exemplars are merely close, so an exemplar identical to the query always
wins. Every class that holds exemplars appears in the distribution.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np

from models.features import FeatureVector
from models.prediction import Prediction
from .store import ExemplarStore, l2_normalize


class OnlineClassifier:
    """Incremental few-shot classifier backed by an ExemplarStore."""

    def __init__(self, store: ExemplarStore):
        self._store = store

    @property
    def store(self) -> ExemplarStore:
        return self._store

    @property
    def num_classes(self) -> int:
        """Number of classes holding at least one exemplar."""
        return len(self._store.class_ids())

    def add_example(self, class_id: int, vector: FeatureVector) -> int:
        """Consume vector into the store. See ExemplarStore.add_example."""
        return self._store.add_example(class_id, vector)

    def clear_all(self) -> None:
        self._store.clear_all()

    def predict(self, vector: FeatureVector) -> Optional[Prediction]:
        """
        Score vector against the stored exemplars.

        The vector is only read; the caller still owns it and must release it.

        Returns:
            Prediction whose confidences sum to 1.0, or None when the store
            holds no exemplars. Ties go to the lowest class id.
        """
        index = self._store.index()
        if index is None:
            return None
        matrix, labels = index

        query = l2_normalize(vector.values)
        if query.shape[0] != matrix.shape[1]:
            raise ValueError(
                f"Feature dimension {query.shape[0]} does not match store dimension {matrix.shape[1]}"
            )

        similarities = matrix @ query
        scores: Dict[int, float] = {}
        for cid in self._store.class_ids():
            best = float(np.max(similarities[labels == cid]))
            scores[cid] = (min(max(best, -1.0), 1.0) + 1.0) / 2.0

        total = sum(scores.values())
        if total > 0:
            confidences = {cid: score / total for cid, score in scores.items()}
        else:
            confidences = {cid: 1.0 / len(scores) for cid in scores}

        winner = max(scores, key=lambda cid: scores[cid])
        return Prediction(class_id=winner, confidences=confidences)
