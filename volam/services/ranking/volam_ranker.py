from __future__ import annotations

import functools
from typing import List, Optional, Union

from volam.constants.config import RANKING_TIE_EPSILON
from volam.core.logger import get_logger
from volam.core.types import Evidence, RankingMode, VOLaMParameters

logger = get_logger(__name__)


def volam_score(cosine_score: float, nullness: float, empathy_fit: float, params: VOLaMParameters) -> float:
    """alpha*cosine + beta*(1 - nullness) + gamma*empathy_fit"""
    return params.alpha * cosine_score + params.beta * (1.0 - nullness) + params.gamma * empathy_fit


def _compare(a: Evidence, b: Evidence) -> int:
    # near-ties fall back to cosine similarity
    if abs(a.score - b.score) < RANKING_TIE_EPSILON:
        if a.cosine_score == b.cosine_score:
            return 0
        return -1 if a.cosine_score > b.cosine_score else 1
    return -1 if a.score > b.score else 1


def sort_evidence(evidence: List[Evidence]) -> List[Evidence]:
    """Sort by score descending with the near-tie cosine fallback. Stable for exact ties."""
    return sorted(evidence, key=functools.cmp_to_key(_compare))


def rank(
    evidence: List[Evidence],
    mode: Union[RankingMode, str] = RankingMode.BASELINE,
    params: Optional[VOLaMParameters] = None,
    k: Optional[int] = None,
) -> List[Evidence]:
    """
    Score, sort and truncate evidence.

    Inputs:
      - evidence: candidates with cosine_score, nullness and (VOLaM) empathy_fit filled in
      - mode: "baseline" scores by cosine only, "volam" by the weighted sum
      - params: VOLaM weights (defaults 0.6 / 0.3 / 0.1)
      - k: truncate after sorting; None keeps every candidate

    Returns:
      - new list sorted by score desc; each item's `score` is overwritten
    """
    mode = RankingMode(mode)
    params = params or VOLaMParameters()

    for ev in evidence:
        if mode is RankingMode.VOLAM:
            ev.score = volam_score(ev.cosine_score, ev.nullness, ev.empathy_fit, params)
        else:
            ev.score = ev.cosine_score

    ranked = sort_evidence(evidence)
    if k is not None:
        ranked = ranked[: max(int(k), 0)]

    if mode is RankingMode.VOLAM:
        logger.info(
            f"[VolamRanker] Ranked {len(evidence)} → {len(ranked)} candidates "
            f"(alpha={params.alpha}, beta={params.beta}, gamma={params.gamma}). "
            f"Top score: {ranked[0].score if ranked else 'N/A'}"
        )
    else:
        logger.info(
            f"[VolamRanker] Baseline ranked {len(evidence)} → {len(ranked)} candidates. "
            f"Top score: {ranked[0].score if ranked else 'N/A'}"
        )
    return ranked
