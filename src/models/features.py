"""
Feature vector ownership model.

A FeatureVector is produced by the embedding model for one captured frame.
It is owned by whoever holds it until it is either released (transient
classification query) or transferred into the exemplar store.

Typical transient use:
    with embedder.embed(frame) as vector:
        prediction = classifier.predict(vector)

Transfer:
    store.add_example(class_id, embedder.embed(frame))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np

from .errors import VectorReleasedError


class VectorState(str, Enum):
    OWNED = "owned"
    RELEASED = "released"
    TRANSFERRED = "transferred"


class FeatureVector:
    """Owning handle over a dense 1-D embedding."""

    def __init__(self, values: np.ndarray):
        data = np.asarray(values, dtype=np.float32).reshape(-1)
        if data.size == 0:
            raise ValueError("Feature vector must not be empty")
        self._data: Optional[np.ndarray] = data
        self._state = VectorState.OWNED

    @property
    def state(self) -> VectorState:
        return self._state

    @property
    def is_owned(self) -> bool:
        return self._state is VectorState.OWNED

    @property
    def dim(self) -> int:
        return int(self.values.shape[0])

    @property
    def values(self) -> np.ndarray:
        """The embedding. Raises once the handle no longer owns it."""
        if self._data is None:
            raise VectorReleasedError(f"Feature vector already {self._state.value}")
        return self._data

    def release(self) -> None:
        """
        Drop the embedding.

        Releasing a transferred vector does nothing since the store owns the
        data. Releasing twice raises VectorReleasedError.
        """
        if self._state is VectorState.TRANSFERRED:
            return
        if self._state is VectorState.RELEASED:
            raise VectorReleasedError("Feature vector released twice")
        self._data = None
        self._state = VectorState.RELEASED

    def take(self) -> np.ndarray:
        """Move the embedding out of this handle. Only the store calls this."""
        data = self.values
        self._data = None
        self._state = VectorState.TRANSFERRED
        return data

    def __enter__(self) -> "FeatureVector":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._state is VectorState.OWNED:
            self.release()

    def __repr__(self) -> str:
        size = self._data.shape[0] if self._data is not None else 0
        return f"FeatureVector(dim={size}, state={self._state.value})"


@dataclass(frozen=True)
class ClassExample:
    """One exemplar held by the store."""
    class_id: int
    vector: np.ndarray
