"""
Retrieval Orchestrator: embed the query, search the vector index, and turn
candidates into Evidence records.

Per-evidence nullness here is a naive similarity heuristic,
clamp(1 - cosine, 0, 1). Concept-level nullness lives in the NullnessTracker.
"""

from __future__ import annotations

import asyncio
from typing import List, Union

from volam.constants.config import VOLAM_OVERFETCH_FACTOR, VOLAM_OVERFETCH_MIN
from volam.core.logger import get_logger
from volam.core.observability import stage_timer, volam_external_calls_total
from volam.core.types import Evidence, EvidenceMetadata, RankingMode
from volam.services.embedding.model import EmbeddingProvider
from volam.services.vdb.base import SearchResult, VectorIndex

logger = get_logger(__name__)


class RetrievalError(RuntimeError):
    """An external collaborator (embedding or vector index) failed for a query."""


def candidate_count(k: int, mode: Union[RankingMode, str]) -> int:
    if RankingMode(mode) is RankingMode.VOLAM:
        return max(VOLAM_OVERFETCH_FACTOR * k, VOLAM_OVERFETCH_MIN)
    return k


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def to_evidence(result: SearchResult) -> Evidence:
    doc = result.document
    metadata = EvidenceMetadata.from_dict(doc.metadata)
    cosine = _clamp01(result.score)
    return Evidence(
        id=doc.id,
        content=doc.content,
        source=metadata.source or doc.id,
        cosine_score=cosine,
        nullness=_clamp01(1.0 - cosine),
        empathy_fit=0.0,
        score=cosine,
        metadata=metadata,
    )


class RetrievalOrchestrator:
    def __init__(self, embedder: EmbeddingProvider, index: VectorIndex):
        self.embedder = embedder
        self.index = index

    async def retrieve(self, query: str, k: int, mode: Union[RankingMode, str] = RankingMode.BASELINE) -> List[Evidence]:
        """
        Fetch raw candidates for a query.

        baseline requests exactly k candidates; volam requests max(2k, 10) to
        leave re-ranking headroom. Failures are not retried.
        """
        mode = RankingMode(mode)
        top_k = candidate_count(k, mode)

        try:
            with stage_timer("embed"):
                embedded = await self.embedder.embed_async(query)
            volam_external_calls_total.labels(provider="embedding", status="ok").inc()
        except Exception as e:
            volam_external_calls_total.labels(provider="embedding", status="error").inc()
            logger.error(f"[Retrieval] Embedding failed for query='{query}': {e}")
            raise RetrievalError(f"Embedding failed: {e}") from e

        try:
            loop = asyncio.get_running_loop()
            with stage_timer("search"):
                results = await loop.run_in_executor(None, self.index.search, embedded.embedding, top_k)
            volam_external_calls_total.labels(provider=self.index.backend or "vector_index", status="ok").inc()
        except Exception as e:
            volam_external_calls_total.labels(provider=self.index.backend or "vector_index", status="error").inc()
            logger.error(f"[Retrieval] Vector search failed for query='{query}': {e}")
            raise RetrievalError(f"Vector search failed: {e}") from e

        evidence = [to_evidence(r) for r in results]
        logger.info(
            f"[Retrieval] Retrieved {len(evidence)} candidates (requested={top_k}, mode={mode.value}, "
            f"tokens={embedded.tokens})"
        )
        return evidence
