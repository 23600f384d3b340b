"""
Per-concept nullness tracking.
"""

from .tracker import ConceptRecord, NullnessTracker, clamp_nullness, extract_concept

__all__ = [
    "NullnessTracker",
    "ConceptRecord",
    "extract_concept",
    "clamp_nullness",
]
