"""
VOLaM ranking pipeline.

query → embed → vector search → [volam: empathy fit] → rank/truncate
      → compose answer (reads concept nullness) → record nullness observation
"""

from __future__ import annotations

from typing import Optional

from volam.core.config import settings
from volam.core.logger import get_logger
from volam.core.observability import (
    stage_timer,
    volam_nullness_updates_total,
    volam_rank_failures_total,
    volam_rank_requests_total,
)
from volam.core.schemas import (
    HistoryPoint,
    HistoryRequest,
    HistoryResponse,
    NullnessUpdateRequest,
    NullnessUpdateResponse,
    RankRequest,
)
from volam.core.types import RankingMode, RankingResult, VOLaMParameters
from volam.services.answer.composer import AnswerComposer
from volam.services.embedding.model import EmbeddingProvider
from volam.services.empathy.calculator import EmpathyFitCalculator
from volam.services.empathy.profiles import EmpathyProfileRegistry, build_custom_profile
from volam.services.nullness.tracker import NullnessTracker, extract_concept
from volam.services.ranking.volam_ranker import rank
from volam.services.retrieval import RetrievalError, RetrievalOrchestrator
from volam.services.vdb.base import VectorIndex
from volam.services.vdb.factory import create_vector_index

logger = get_logger(__name__)


class VolamPipeline:
    def __init__(
        self,
        retriever: RetrievalOrchestrator,
        tracker: Optional[NullnessTracker] = None,
        empathy: Optional[EmpathyFitCalculator] = None,
    ):
        self.retriever = retriever
        self.tracker = tracker or NullnessTracker()
        self.empathy = empathy or EmpathyFitCalculator()
        self.composer = AnswerComposer(self.tracker)

    @classmethod
    def from_settings(
        cls,
        embedder: Optional[EmbeddingProvider] = None,
        index: Optional[VectorIndex] = None,
    ) -> "VolamPipeline":
        embedder = embedder or EmbeddingProvider()
        index = index or create_vector_index(settings.VECTOR_BACKEND, dimensions=settings.VECTOR_DIMENSIONS)
        registry = EmpathyProfileRegistry.from_file(settings.EMPATHY_PROFILES_PATH)
        return cls(
            retriever=RetrievalOrchestrator(embedder, index),
            tracker=NullnessTracker(),
            empathy=EmpathyFitCalculator(registry),
        )

    async def rank(self, request: RankRequest) -> RankingResult:
        mode = RankingMode(request.mode)
        volam_rank_requests_total.labels(mode=mode.value).inc()

        try:
            candidates = await self.retriever.retrieve(request.query, request.k, mode)
        except RetrievalError:
            volam_rank_failures_total.inc()
            raise

        params: Optional[VOLaMParameters] = None
        profile_name: Optional[str] = None
        if mode is RankingMode.VOLAM:
            params = VOLaMParameters(alpha=request.alpha, beta=request.beta, gamma=request.gamma)
            custom = build_custom_profile(request.custom_profile) if request.custom_profile is not None else None
            profile = custom or self.empathy.registry.resolve(request.empathy_profile)
            profile_name = profile.id
            with stage_timer("empathy"):
                self.empathy.annotate(candidates, profile=profile)

        with stage_timer("rank"):
            ranked = rank(candidates, mode, params, k=request.k)

        with stage_timer("compose"):
            composition = self.composer.compose(request.query, ranked, mode)

        avg_nullness = sum(e.nullness for e in ranked) / len(ranked) if ranked else 1.0
        concept = extract_concept(request.query)
        self.tracker.record(
            concept,
            avg_nullness,
            composition.confidence,
            len(ranked),
            context=f"{mode.value} query",
        )

        logger.info(
            f"[VolamPipeline] mode={mode.value} query='{request.query}' k={request.k} "
            f"top_scores={[round(e.score, 4) for e in ranked[:3]]} confidence={composition.confidence:.3f}"
        )
        return RankingResult(
            evidence=ranked,
            answer=composition.answer,
            confidence=composition.confidence,
            nullness=avg_nullness,
            mode=mode,
            concept=concept,
            citations=composition.citations,
            rationale=composition.rationale,
            parameters=params,
            empathy_profile=profile_name,
        )

    def update_nullness(self, request: NullnessUpdateRequest) -> NullnessUpdateResponse:
        update = self.tracker.apply_evidence(
            request.concept,
            request.action,
            request.evidence_strength,
            k=request.k,
            lam=request.lam,
        )
        volam_nullness_updates_total.labels(action=request.action).inc()
        return NullnessUpdateResponse(
            concept=update.concept,
            old_nullness=update.old_nullness,
            new_nullness=update.new_nullness,
            delta_nullness=update.delta,
            timestamp=update.timestamp,
        )

    def history(self, request: HistoryRequest) -> HistoryResponse:
        entries = self.tracker.history(request.concept, limit=request.limit, window_hours=request.window_hours)
        total = len(self.tracker.history(request.concept))
        return HistoryResponse(
            concept=request.concept,
            history=[
                HistoryPoint(timestamp=e.timestamp, nullness=e.nullness, trigger=e.trigger, confidence=e.confidence)
                for e in entries
            ],
            delta_nullness=self.tracker.delta(request.concept, request.window_hours),
            current_nullness=self.tracker.current(request.concept) if total else None,
            total_entries=total,
            window_hours=request.window_hours,
        )
