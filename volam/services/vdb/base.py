"""
Vector index capability interface.

Backends are a closed set chosen at construction time (see factory.py).
Scores returned by search are higher-is-better inner products over
L2-normalized vectors, i.e. cosine similarity.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np


@dataclass
class VectorDocument:
    id: str
    content: str
    embedding: List[float]
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    document: VectorDocument
    score: float

    @property
    def distance(self) -> float:
        return 1.0 - self.score


def normalize_vector(vector: Sequence[float]) -> np.ndarray:
    arr = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(arr))
    if norm == 0.0:
        return arr
    return arr / norm


class VectorIndex(ABC):
    backend: str = ""

    def __init__(self, dimensions: int):
        self.dimensions = int(dimensions)

    @abstractmethod
    def add_documents(self, documents: List[VectorDocument]) -> None: ...

    @abstractmethod
    def search(self, query_embedding: Sequence[float], k: int) -> List[SearchResult]: ...

    @abstractmethod
    def get_document(self, doc_id: str) -> Optional[VectorDocument]: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def save(self) -> None: ...

    @abstractmethod
    def load(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    def _check_dimensions(self, vector: Sequence[float]) -> None:
        if len(vector) != self.dimensions:
            raise ValueError(f"Expected {self.dimensions}-dim vector, got {len(vector)}")
