"""
Nullness Tracker: per-concept uncertainty state with append-only history.

Nullness is a [0, 1] uncertainty value (0 = certain, 1 = fully uncertain).
Each concept owns an ordered history; its current nullness is always the
value of the last entry, or 0.5 when no history exists.

Two ways to move a concept:
  - record(): implicit observation logged after every ranked query
  - apply_evidence(): explicit support/refute update
        decay  = lambda ** time_delta
        impact = k * evidence_strength * decay
        new    = clamp(old -/+ impact, 0, 1)

Updates to the same concept are serialized by a per-concept lock; different
concepts never contend. History grows without bound.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from volam.constants.config import (
    CONCEPT_TOKEN_COUNT,
    NULLNESS_DEFAULT,
    NULLNESS_DEFAULT_K,
    NULLNESS_DEFAULT_LAMBDA,
    NULLNESS_DELTA_WINDOW_HOURS,
    NULLNESS_TRIGGER_EVIDENCE,
    NULLNESS_TRIGGER_MANUAL,
)
from volam.core.logger import get_logger
from volam.core.types import NullnessHistoryEntry, NullnessUpdate

logger = get_logger(__name__)

ACTIONS = ("support", "refute")

_NON_CONCEPT_CHARS = re.compile(r"[^a-z0-9_]")


def extract_concept(query: str) -> str:
    """
    Coarse concept id: first three whitespace tokens of the lowercased query,
    joined with underscores, non-alphanumerics stripped.

    Queries sharing their first three words map to the same concept.
    """
    tokens = (query or "").lower().split()[:CONCEPT_TOKEN_COUNT]
    return _NON_CONCEPT_CHARS.sub("", "_".join(tokens))


def clamp_nullness(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ConceptRecord:
    id: str
    created_at: datetime
    updated_at: datetime
    history: List[NullnessHistoryEntry] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def current_nullness(self) -> float:
        if not self.history:
            return NULLNESS_DEFAULT
        return self.history[-1].nullness


@dataclass(frozen=True)
class ConceptSummary:
    concept: str
    current_nullness: float
    last_updated: str
    update_count: int


@dataclass(frozen=True)
class NullnessStats:
    total_concepts: int
    avg_nullness: float
    concepts_with_decreasing_nullness: int
    concepts_with_increasing_nullness: int


class NullnessTracker:
    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utcnow
        self._concepts: Dict[str, ConceptRecord] = {}
        self._registry_lock = threading.Lock()

    # ------------------------------------------------------------------
    # store
    # ------------------------------------------------------------------

    def _get_or_create(self, concept: str) -> ConceptRecord:
        record = self._concepts.get(concept)
        if record is not None:
            return record
        with self._registry_lock:
            record = self._concepts.get(concept)
            if record is None:
                now = self._clock()
                record = ConceptRecord(id=concept, created_at=now, updated_at=now)
                self._concepts[concept] = record
                logger.debug(f"[NullnessTracker] Created concept '{concept}'")
        return record

    def _next_timestamp(self, record: ConceptRecord) -> datetime:
        # keep timestamps strictly increasing within one concept
        now = self._clock()
        if record.history and now <= record.updated_at:
            now = record.updated_at + timedelta(microseconds=1)
        return now

    def _append(self, record: ConceptRecord, entry: NullnessHistoryEntry, at: datetime) -> None:
        record.history.append(entry)
        record.updated_at = at

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    def record(
        self,
        concept: str,
        nullness: float,
        confidence: float,
        evidence_count: int,
        context: Optional[str] = None,
    ) -> NullnessHistoryEntry:
        """Log an observed nullness for a concept. Never rejected."""
        record = self._get_or_create(concept)
        with record.lock:
            at = self._next_timestamp(record)
            entry = NullnessHistoryEntry(
                timestamp=at.isoformat(),
                nullness=clamp_nullness(nullness),
                trigger=NULLNESS_TRIGGER_EVIDENCE,
                context=context,
                confidence=float(confidence),
                evidence_count=int(evidence_count),
            )
            self._append(record, entry, at)

        logger.info(
            f"[NullnessTracker] Recorded concept='{concept}' nullness={entry.nullness:.3f} "
            f"confidence={confidence:.3f} evidence={evidence_count}"
        )
        return entry

    def apply_evidence(
        self,
        concept: str,
        action: str,
        evidence_strength: float,
        k: float = NULLNESS_DEFAULT_K,
        lam: float = NULLNESS_DEFAULT_LAMBDA,
        time_delta: Optional[float] = None,
    ) -> NullnessUpdate:
        """
        Explicit support/refute update.

        time_delta is in hours; when omitted it is the time since the
        concept's last update (0 for a new concept).
        """
        if action not in ACTIONS:
            raise ValueError(f"Unknown nullness action: {action!r} (expected one of {ACTIONS})")
        if time_delta is not None and time_delta < 0:
            raise ValueError(f"time_delta must be non-negative, got {time_delta}")

        record = self._get_or_create(concept)
        with record.lock:
            at = self._next_timestamp(record)
            if time_delta is None:
                time_delta = (at - record.updated_at).total_seconds() / 3600.0 if record.history else 0.0

            old = record.current_nullness
            decay = float(lam) ** float(time_delta)
            impact = float(k) * float(evidence_strength) * decay
            raw = old - impact if action == "support" else old + impact
            new = clamp_nullness(raw)

            entry = NullnessHistoryEntry(
                timestamp=at.isoformat(),
                nullness=new,
                trigger=NULLNESS_TRIGGER_MANUAL,
                context=f"{action} strength={float(evidence_strength):.3f} k={float(k):.3f} lambda={float(lam):.3f}",
            )
            self._append(record, entry, at)

        update = NullnessUpdate(
            concept=concept,
            old_nullness=old,
            new_nullness=new,
            delta=new - old,
            timestamp=entry.timestamp,
        )
        logger.info(
            f"[NullnessTracker] {action} concept='{concept}' {old:.3f} → {new:.3f} "
            f"(impact={impact:.4f}, decay={decay:.4f})"
        )
        return update

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def current(self, concept: str) -> float:
        record = self._concepts.get(concept)
        if record is None:
            return NULLNESS_DEFAULT
        return record.current_nullness

    def _window(self, record: ConceptRecord, window_hours: float) -> List[NullnessHistoryEntry]:
        start = self._clock() - timedelta(hours=float(window_hours))
        with record.lock:
            entries = list(record.history)
        return [e for e in entries if datetime.fromisoformat(e.timestamp) >= start]

    def delta(self, concept: str, window_hours: float = NULLNESS_DELTA_WINDOW_HOURS) -> float:
        """latest - earliest nullness within the trailing window; 0 with fewer than two entries."""
        record = self._concepts.get(concept)
        if record is None:
            return 0.0
        recent = self._window(record, window_hours)
        if len(recent) < 2:
            return 0.0
        return recent[-1].nullness - recent[0].nullness

    def history(
        self,
        concept: str,
        limit: Optional[int] = None,
        window_hours: Optional[float] = None,
    ) -> List[NullnessHistoryEntry]:
        record = self._concepts.get(concept)
        if record is None:
            return []
        if window_hours is not None:
            entries = self._window(record, window_hours)
        else:
            with record.lock:
                entries = list(record.history)
        if limit is not None:
            entries = entries[-int(limit) :] if limit > 0 else []
        return entries

    def concepts(self) -> List[str]:
        return list(self._concepts.keys())

    def concept_summaries(self) -> List[ConceptSummary]:
        summaries = []
        for concept_id, record in list(self._concepts.items()):
            with record.lock:
                summaries.append(
                    ConceptSummary(
                        concept=concept_id,
                        current_nullness=record.current_nullness,
                        last_updated=record.updated_at.isoformat(),
                        update_count=len(record.history),
                    )
                )
        return summaries

    def stats(self) -> NullnessStats:
        total = 0.0
        decreasing = 0
        increasing = 0

        for concept_id, record in list(self._concepts.items()):
            if not record.history:
                continue
            total += record.current_nullness
            d = self.delta(concept_id)
            if d < 0:
                decreasing += 1
            elif d > 0:
                increasing += 1

        concepts = len(self._concepts)
        return NullnessStats(
            total_concepts=concepts,
            avg_nullness=total / concepts if concepts else 0.0,
            concepts_with_decreasing_nullness=decreasing,
            concepts_with_increasing_nullness=increasing,
        )
