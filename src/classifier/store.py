"""
Exemplar store for the teachable classifier.

Holds labeled feature vectors per declared class. Vectors handed to
add_example() are consumed: the store takes ownership of the data and the
caller's handle becomes empty.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from models.features import ClassExample, FeatureVector
from .registry import ClassRegistry


def l2_normalize(values: np.ndarray) -> np.ndarray:
    """Unit-length copy of a vector. Zero vectors stay zero."""
    norm = float(np.linalg.norm(values))
    if norm == 0.0:
        return np.zeros_like(values, dtype=np.float32)
    return (values / norm).astype(np.float32)


class ExemplarStore:
    """
    Append-only (until cleared) store of class exemplars.

    Exemplars are stored L2-normalized so similarity queries are a single
    matrix-vector product.
    """

    def __init__(self, registry: ClassRegistry):
        self._registry = registry
        self._examples: Dict[int, List[ClassExample]] = {}
        self._dim: Optional[int] = None
        self._index: Optional[Tuple[np.ndarray, np.ndarray]] = None

    @property
    def registry(self) -> ClassRegistry:
        return self._registry

    @property
    def dim(self) -> Optional[int]:
        """Embedding dimension, fixed by the first exemplar."""
        return self._dim

    @property
    def total(self) -> int:
        return sum(len(v) for v in self._examples.values())

    def is_empty(self) -> bool:
        return self.total == 0

    def add_example(self, class_id: int, vector: FeatureVector) -> int:
        """
        Append an exemplar and take ownership of its vector.

        Returns:
            The class's new exemplar count.

        Raises:
            KeyError: class_id is not declared.
            ValueError: dimension differs from earlier exemplars. The vector
                stays owned by the caller.
            VectorReleasedError: the vector was already released or transferred.
        """
        if class_id not in self._registry:
            raise KeyError(f"Unknown class id {class_id}")

        dim = vector.dim
        if self._dim is not None and dim != self._dim:
            raise ValueError(f"Feature dimension {dim} does not match store dimension {self._dim}")

        data = vector.take()
        examples = self._examples.setdefault(class_id, [])
        examples.append(ClassExample(class_id=class_id, vector=l2_normalize(data)))
        self._dim = dim
        self._index = None
        logging.debug(f"Added example to class {class_id} (count={len(examples)}, total={self.total})")
        return len(examples)

    def clear_all(self) -> None:
        """Drop every exemplar of every class at once."""
        self._examples = {}
        self._dim = None
        self._index = None
        logging.info("Exemplar store cleared")

    def count(self, class_id: int) -> int:
        return len(self._examples.get(class_id, ()))

    def counts(self) -> Dict[int, int]:
        """Exemplar count for every declared class (zero included)."""
        return {cid: self.count(cid) for cid in self._registry}

    def class_ids(self) -> List[int]:
        """Classes holding at least one exemplar."""
        return sorted(cid for cid, examples in self._examples.items() if examples)

    def examples(self, class_id: int) -> List[ClassExample]:
        return list(self._examples.get(class_id, ()))

    def index(self) -> Optional[Tuple[np.ndarray, np.ndarray]]:
        """
        Stacked exemplars for similarity queries.

        Returns:
            (matrix of shape (N, dim), labels of shape (N,)) or None if empty.
        """
        if self.is_empty():
            return None
        if self._index is None:
            rows = [ex for cid in sorted(self._examples) for ex in self._examples[cid]]
            matrix = np.stack([ex.vector for ex in rows])
            labels = np.array([ex.class_id for ex in rows], dtype=np.int64)
            self._index = (matrix, labels)
        return self._index
