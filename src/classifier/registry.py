"""
Declared classes for the teachable classifier.
"""

from __future__ import annotations

import logging
import string
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

DEFAULT_CLASSES = ("Class A", "Class B", "Background")


class Readiness(str, Enum):
    """How far along a class is in collecting examples."""
    EMPTY = "empty"
    COLLECTING = "collecting"
    READY = "ready"


@dataclass(frozen=True)
class ClassInfo:
    """
    A declared class with its current example count.

    Attributes:
        class_id: Stable integer id, assigned in declaration order.
        name: User-facing name.
        count: Number of exemplars held for this class.
        readiness: Derived collection status.
    """
    class_id: int
    name: str
    count: int = 0
    readiness: Readiness = Readiness.EMPTY


class ClassRegistry:
    """
    Ordered set of declared classes.

    Ids are assigned sequentially and never reused. New classes without an
    explicit name are called "Class <letter>" after their id.
    """

    def __init__(self, names: Sequence[str] = DEFAULT_CLASSES, ready_threshold: int = 10):
        if ready_threshold < 1:
            raise ValueError("ready_threshold must be at least 1")
        self._names: Dict[int, str] = {}
        self.ready_threshold = ready_threshold
        for name in names:
            self.add_class(name)

    def add_class(self, name: Optional[str] = None) -> int:
        class_id = len(self._names)
        if name is None:
            name = f"Class {_letter(class_id)}"
        self._names[class_id] = name
        logging.debug(f"Declared class {class_id}: {name}")
        return class_id

    def rename(self, class_id: int, name: str) -> None:
        if class_id not in self._names:
            raise KeyError(f"Unknown class id {class_id}")
        self._names[class_id] = name

    def is_declared(self, class_id: int) -> bool:
        return class_id in self._names

    def name(self, class_id: int) -> str:
        return self._names.get(class_id, f"Class {class_id}")

    def names(self) -> Dict[int, str]:
        return dict(self._names)

    def readiness(self, count: int) -> Readiness:
        if count <= 0:
            return Readiness.EMPTY
        if count < self.ready_threshold:
            return Readiness.COLLECTING
        return Readiness.READY

    def describe(self, counts: Dict[int, int]) -> List[ClassInfo]:
        """ClassInfo for every declared class, in id order."""
        return [
            ClassInfo(
                class_id=cid,
                name=name,
                count=counts.get(cid, 0),
                readiness=self.readiness(counts.get(cid, 0)),
            )
            for cid, name in self._names.items()
        ]

    def __contains__(self, class_id: object) -> bool:
        return class_id in self._names

    def __iter__(self) -> Iterator[int]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)


def _letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA, ..."""
    letters = string.ascii_uppercase
    out = ""
    index += 1
    while index > 0:
        index, rem = divmod(index - 1, 26)
        out = letters[rem] + out
    return out
