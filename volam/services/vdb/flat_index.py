import json
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from volam.core.logger import get_logger
from volam.services.vdb.base import SearchResult, VectorDocument, VectorIndex, normalize_vector

logger = get_logger(__name__)


class FlatVectorIndex(VectorIndex):
    """
    Exhaustive inner-product index held in a numpy matrix.

    Persistence writes the matrix to `<index_path>.npy` and the documents to
    `<index_path>.metadata.json`.
    """

    backend = "flat"

    def __init__(self, dimensions: int, index_path: Optional[str] = None, autoload: bool = True):
        super().__init__(dimensions)
        self.index_path = Path(index_path) if index_path else None
        self._matrix = np.zeros((0, self.dimensions), dtype=np.float32)
        self._ids: List[str] = []
        self._documents: Dict[str, VectorDocument] = {}

        if autoload and self.index_path and (self._vectors_path.exists() or self._metadata_path.exists()):
            self.load()
        logger.info(f"[FlatVectorIndex] Initialized with {self.count()} documents")

    @property
    def _vectors_path(self) -> Path:
        assert self.index_path is not None  # nosec B101
        return self.index_path.with_name(self.index_path.name + ".npy")

    @property
    def _metadata_path(self) -> Path:
        assert self.index_path is not None  # nosec B101
        return self.index_path.with_name(self.index_path.name + ".metadata.json")

    def add_documents(self, documents: List[VectorDocument]) -> None:
        if not documents:
            return

        rows = []
        for doc in documents:
            self._check_dimensions(doc.embedding)
            if doc.id in self._documents:
                # re-adding an id replaces its vector in place
                row = self._ids.index(doc.id)
                self._matrix[row] = normalize_vector(doc.embedding)
                self._documents[doc.id] = doc
                continue
            rows.append(normalize_vector(doc.embedding))
            self._ids.append(doc.id)
            self._documents[doc.id] = doc

        if rows:
            self._matrix = np.vstack([self._matrix, np.stack(rows)])
        logger.info(f"[FlatVectorIndex] Added {len(documents)} documents (total={self.count()})")

    def search(self, query_embedding: Sequence[float], k: int) -> List[SearchResult]:
        self._check_dimensions(query_embedding)
        if not self._ids or k <= 0:
            return []

        query = normalize_vector(query_embedding)
        scores = self._matrix @ query
        top_k = min(int(k), len(self._ids))
        # stable sort keeps insertion order for equal scores
        order = np.argsort(-scores, kind="stable")[:top_k]

        return [SearchResult(document=self._documents[self._ids[i]], score=float(scores[i])) for i in order]

    def get_document(self, doc_id: str) -> Optional[VectorDocument]:
        return self._documents.get(doc_id)

    def count(self) -> int:
        return len(self._ids)

    def clear(self) -> None:
        self._matrix = np.zeros((0, self.dimensions), dtype=np.float32)
        self._ids = []
        self._documents = {}
        logger.info("[FlatVectorIndex] Cleared")

    def save(self) -> None:
        if self.index_path is None:
            raise RuntimeError("Cannot save: index path not configured")

        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        np.save(self._vectors_path, self._matrix)
        payload = {
            "dimensions": self.dimensions,
            "ids": self._ids,
            "documents": [
                {"id": d.id, "content": d.content, "embedding": d.embedding, "metadata": d.metadata}
                for d in (self._documents[i] for i in self._ids)
            ],
        }
        self._metadata_path.write_text(json.dumps(payload), encoding="utf-8")
        logger.info(f"[FlatVectorIndex] Saved {self.count()} documents to {self.index_path}")

    def load(self) -> None:
        if self.index_path is None:
            raise RuntimeError("Cannot load: index path not configured")

        missing = [p.name for p in (self._vectors_path, self._metadata_path) if not p.exists()]
        if missing:
            raise ValueError(f"Incomplete flat index at {self.index_path}: missing {', '.join(missing)}")

        matrix = np.load(self._vectors_path)
        payload = json.loads(self._metadata_path.read_text(encoding="utf-8"))
        if int(payload.get("dimensions", self.dimensions)) != self.dimensions:
            raise ValueError(
                f"Persisted index has {payload.get('dimensions')} dimensions, expected {self.dimensions}"
            )

        self._matrix = matrix.astype(np.float32).reshape(-1, self.dimensions)
        self._ids = list(payload.get("ids") or [])
        self._documents = {d["id"]: VectorDocument(**d) for d in payload.get("documents") or []}
        logger.info(f"[FlatVectorIndex] Loaded {self.count()} documents from {self.index_path}")

    def close(self) -> None:
        if self.index_path is not None:
            self.save()
        self.clear()
