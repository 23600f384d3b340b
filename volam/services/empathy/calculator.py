"""
Empathy Fit Calculator: how well a piece of evidence aligns with a weighted
set of stakeholder priorities.

Policy:
  - no stakeholder tags             -> 0.5 (neutral)
  - tags, but none in the profile   -> 0.2 (poor alignment)
  - otherwise avg(matched weights) + min(0.1 * matched, 0.3), capped at 1.0
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from volam.constants.config import (
    DEFAULT_PROFILE_NAME,
    EMPATHY_MATCH_BONUS,
    EMPATHY_MATCH_BONUS_CAP,
    EMPATHY_NEUTRAL_FIT,
    EMPATHY_UNMATCHED_FIT,
    STAKEHOLDER_KEYWORDS,
    TOPIC_KEYWORDS,
)
from volam.core.logger import get_logger
from volam.core.types import ContentTags, EmpathyProfile, Evidence
from volam.services.empathy.profiles import EmpathyProfileRegistry, normalize_stakeholder_key

logger = get_logger(__name__)


def extract_content_tags(content: str, metadata: Optional[Mapping[str, Any]] = None) -> ContentTags:
    """
    Keyword-based stakeholder and topic tagging.

    Stakeholders listed in metadata come first, then any stakeholder whose
    keywords appear in the content.
    """
    metadata = metadata or {}
    tags = ContentTags(domain=str(metadata.get("domain") or "general"))

    declared = metadata.get("stakeholders") or []
    if isinstance(declared, str):
        declared = [declared]
    for stakeholder in declared:
        key = normalize_stakeholder_key(stakeholder)
        if key and key not in tags.stakeholders:
            tags.stakeholders.append(key)

    content_lower = (content or "").lower()
    for stakeholder, keywords in STAKEHOLDER_KEYWORDS.items():
        if stakeholder not in tags.stakeholders and any(kw in content_lower for kw in keywords):
            tags.stakeholders.append(stakeholder)

    for topic, keywords in TOPIC_KEYWORDS.items():
        if any(kw in content_lower for kw in keywords):
            tags.topics.append(topic)

    return tags


def profile_fit(tags: ContentTags, profile: EmpathyProfile) -> float:
    if not tags.stakeholders:
        return EMPATHY_NEUTRAL_FIT

    total = 0.0
    matched = 0
    for stakeholder in tags.stakeholders:
        weight = profile.stakeholders.get(normalize_stakeholder_key(stakeholder), 0.0)
        # a zero weight does not count as a match
        if weight > 0:
            total += weight
            matched += 1

    if matched == 0:
        return EMPATHY_UNMATCHED_FIT

    avg_fit = total / matched
    bonus = min(matched * EMPATHY_MATCH_BONUS, EMPATHY_MATCH_BONUS_CAP)
    return min(avg_fit + bonus, 1.0)


class EmpathyFitCalculator:
    def __init__(self, registry: Optional[EmpathyProfileRegistry] = None):
        self.registry = registry or EmpathyProfileRegistry()

    def fit(self, content_tags: ContentTags, profile_name: str = DEFAULT_PROFILE_NAME) -> float:
        return profile_fit(content_tags, self.registry.resolve(profile_name))

    def annotate(
        self,
        evidence: List[Evidence],
        profile_name: str = DEFAULT_PROFILE_NAME,
        profile: Optional[EmpathyProfile] = None,
    ) -> List[Evidence]:
        """
        Tag each evidence item and fill in its empathy_fit in place.

        An explicit profile (e.g. a normalized caller-supplied one) takes
        precedence over profile_name.
        """
        profile = profile or self.registry.resolve(profile_name)
        for ev in evidence:
            tags = extract_content_tags(ev.content, ev.metadata.to_dict())
            ev.metadata.stakeholders = list(tags.stakeholders)
            ev.empathy_fit = profile_fit(tags, profile)
            logger.debug(
                f"[EmpathyFit] {ev.id}: stakeholders={tags.stakeholders} fit={ev.empathy_fit:.3f} ({profile.id})"
            )

        logger.info(f"[EmpathyFit] Annotated {len(evidence)} evidence items with profile '{profile.id}'")
        return evidence
