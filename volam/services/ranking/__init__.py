"""
Ranking services for evidence ordering.
"""

from .volam_ranker import rank, sort_evidence, volam_score

__all__ = [
    "rank",
    "sort_evidence",
    "volam_score",
]
