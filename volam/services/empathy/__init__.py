"""
Stakeholder empathy profiles and empathy-fit scoring.
"""

from .calculator import EmpathyFitCalculator, extract_content_tags, profile_fit
from .profiles import EmpathyProfileRegistry, build_custom_profile, load_profiles, normalize_weights

__all__ = [
    "EmpathyFitCalculator",
    "EmpathyProfileRegistry",
    "extract_content_tags",
    "profile_fit",
    "build_custom_profile",
    "load_profiles",
    "normalize_weights",
]
