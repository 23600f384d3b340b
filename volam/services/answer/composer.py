"""
Answer Composer: turns ranked evidence into citations, a confidence value
and a rationale.

Confidence mixes two uncertainty signals:
  evidence_confidence = Σ score_i * (1 - nullness_i) / Σ score_i
  confidence          = clamp((1 - concept_nullness) * evidence_confidence, 0, 1)
where nullness_i is the per-evidence heuristic and concept_nullness is the
tracked value for the query's concept.
"""

from __future__ import annotations

import re
from typing import List, Optional, Union

from volam.constants.config import (
    CITATION_MAX_CHARS,
    CITATION_TRUNCATE_CHARS,
    CONFIDENCE_BAND_HIGH,
    CONFIDENCE_BAND_MODERATE,
)
from volam.core.logger import get_logger
from volam.core.types import AnswerComposition, Citation, Evidence, RankingMode
from volam.services.nullness.tracker import NullnessTracker, extract_concept

logger = get_logger(__name__)

_SENTENCE_END = re.compile(r"[.!?]+")


def extract_quoted_text(content: str) -> str:
    """First sentence if it fits in 100 chars, else a 97-char prefix plus ellipsis."""
    first_sentence = _SENTENCE_END.split(content, maxsplit=1)[0].strip()
    if first_sentence and len(first_sentence) <= CITATION_MAX_CHARS:
        return first_sentence
    if len(content) > CITATION_MAX_CHARS:
        return content[:CITATION_TRUNCATE_CHARS].strip() + "..."
    return content.strip()


def evidence_confidence(evidence: List[Evidence]) -> float:
    total_weight = 0.0
    weighted = 0.0
    for ev in evidence:
        total_weight += ev.score
        weighted += ev.score * (1.0 - ev.nullness)
    return weighted / total_weight if total_weight > 0 else 0.0


def confidence_band(confidence: float) -> str:
    if confidence >= CONFIDENCE_BAND_HIGH:
        return "high"
    elif confidence >= CONFIDENCE_BAND_MODERATE:
        return "moderate"
    else:
        return "low"


class AnswerComposer:
    def __init__(self, tracker: Optional[NullnessTracker] = None):
        self.tracker = tracker or NullnessTracker()

    def compose(
        self,
        query: str,
        evidence: List[Evidence],
        mode: Union[RankingMode, str] = RankingMode.BASELINE,
    ) -> AnswerComposition:
        mode = RankingMode(mode)

        if not evidence:
            logger.info(f"[AnswerComposer] No evidence for query='{query}'")
            return self._compose_empty(query)

        citations = self._extract_citations(evidence)
        confidence = self._confidence(query, evidence)
        rationale = self._rationale(evidence, mode, confidence)
        answer = self._synthesize(query, evidence, citations)

        n = len(evidence)
        metadata = {
            "evidence_count": n,
            "avg_score": sum(e.score for e in evidence) / n,
            "avg_nullness": sum(e.nullness for e in evidence) / n,
            "synthesis_method": "template-based",
        }

        logger.info(
            f"[AnswerComposer] Composed answer from {n} evidence items "
            f"(mode={mode.value}, confidence={confidence:.3f})"
        )
        return AnswerComposition(
            answer=answer,
            citations=citations,
            confidence=confidence,
            rationale=rationale,
            metadata=metadata,
        )

    def _confidence(self, query: str, evidence: List[Evidence]) -> float:
        concept_nullness = self.tracker.current(extract_concept(query))
        combined = (1.0 - concept_nullness) * evidence_confidence(evidence)
        return max(0.0, min(1.0, combined))

    @staticmethod
    def _extract_citations(evidence: List[Evidence]) -> List[Citation]:
        return [
            Citation(
                id=e.id,
                content=e.content,
                source=e.source,
                score=e.score,
                index=i + 1,
                quoted_text=extract_quoted_text(e.content),
            )
            for i, e in enumerate(evidence)
        ]

    @staticmethod
    def _rationale(evidence: List[Evidence], mode: RankingMode, confidence: float) -> str:
        n = len(evidence)
        avg_score = sum(e.score for e in evidence) / n
        avg_nullness = sum(e.nullness for e in evidence) / n

        parts = [
            f"This answer is based on {n} piece{'s' if n > 1 else ''} of evidence "
            f"retrieved using {mode.value} ranking mode."
        ]
        if mode is RankingMode.VOLAM:
            parts.append(
                "The VOLaM algorithm considered cosine similarity, certainty (1-nullness), "
                "and empathy fit when ranking evidence."
            )
        else:
            parts.append("The baseline algorithm used cosine similarity for ranking.")

        parts.append(f"The average evidence score is {avg_score:.3f} and average nullness is {avg_nullness:.3f}.")

        band = confidence_band(confidence)
        if band == "high":
            parts.append(
                f"The high confidence score ({confidence:.3f}) indicates strong evidence support for this answer."
            )
        elif band == "moderate":
            parts.append(
                f"The moderate confidence score ({confidence:.3f}) suggests reasonable evidence support "
                f"with some uncertainty."
            )
        else:
            parts.append(
                f"The low confidence score ({confidence:.3f}) indicates limited or uncertain evidence for this answer."
            )
        return " ".join(parts)

    @staticmethod
    def _synthesize(query: str, evidence: List[Evidence], citations: List[Citation]) -> str:
        lines = [f'Based on the available evidence, here\'s what I found regarding "{query}":', ""]
        body = [f'According to the evidence, "{c.quoted_text}" [{c.index}]' for c in citations]
        lines.append("\n\n".join(body))
        lines.append("")
        lines.append("**Sources:**")
        for c in citations:
            lines.append(f"[{c.index}] {c.source} (Score: {c.score:.3f})")
        return "\n".join(lines)

    @staticmethod
    def _compose_empty(query: str) -> AnswerComposition:
        return AnswerComposition(
            answer=(
                f'I don\'t have sufficient evidence to answer the query: "{query}". '
                "Please try rephrasing your question or providing more context."
            ),
            citations=[],
            confidence=0.0,
            rationale="No evidence was found matching the query criteria.",
            metadata={
                "evidence_count": 0,
                "avg_score": 0.0,
                "avg_nullness": 0.5,
                "synthesis_method": "empty-response",
            },
        )
