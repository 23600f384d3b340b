from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from volam.constants.config import VOLAM_DEFAULT_WEIGHTS


class RankingMode(str, Enum):
    BASELINE = "baseline"
    VOLAM = "volam"


def _optional_int(value: Any) -> Optional[int]:
    # index metadata is external; non-numeric values are dropped
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass
class EvidenceMetadata:
    domain: Optional[str] = None
    source: Optional[str] = None
    chunk_index: Optional[int] = None
    tokens: Optional[int] = None
    stakeholders: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "EvidenceMetadata":
        data = dict(data or {})
        stakeholders = data.pop("stakeholders", None) or []
        if isinstance(stakeholders, str):
            stakeholders = [stakeholders]
        chunk_index = data.pop("chunk_index", data.pop("chunkIndex", None))
        tokens = data.pop("tokens", None)
        return cls(
            domain=data.pop("domain", None),
            source=data.pop("source", None),
            chunk_index=_optional_int(chunk_index),
            tokens=_optional_int(tokens),
            stakeholders=list(stakeholders),
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(self.extra)
        for key in ("domain", "source", "chunk_index", "tokens"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        if self.stakeholders:
            out["stakeholders"] = list(self.stakeholders)
        return out


@dataclass
class Evidence:
    """
    One retrieved passage for one query.

    score is the composite ranking score:
      - baseline: cosine_score
      - volam: alpha*cosine + beta*(1 - nullness) + gamma*empathy_fit
    """

    id: str
    content: str
    source: str
    cosine_score: float
    nullness: float
    empathy_fit: float = 0.0
    score: float = 0.0
    metadata: EvidenceMetadata = field(default_factory=EvidenceMetadata)


@dataclass(frozen=True)
class VOLaMParameters:
    alpha: float = VOLAM_DEFAULT_WEIGHTS["alpha"]
    beta: float = VOLAM_DEFAULT_WEIGHTS["beta"]
    gamma: float = VOLAM_DEFAULT_WEIGHTS["gamma"]


@dataclass(frozen=True)
class EmpathyProfile:
    id: str
    name: str
    stakeholders: Mapping[str, float]
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.stakeholders:
            raise ValueError(f"Empathy profile '{self.id}' has no stakeholders")
        for stakeholder, weight in self.stakeholders.items():
            if not 0.0 <= float(weight) <= 1.0:
                raise ValueError(f"Empathy profile '{self.id}': weight for '{stakeholder}' outside [0, 1]")
        # read-only view so a loaded profile cannot be mutated in place
        object.__setattr__(self, "stakeholders", MappingProxyType(dict(self.stakeholders)))


@dataclass
class ContentTags:
    stakeholders: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    domain: str = "general"


@dataclass(frozen=True)
class NullnessHistoryEntry:
    timestamp: str
    nullness: float
    trigger: str
    context: Optional[str] = None
    confidence: Optional[float] = None
    evidence_count: Optional[int] = None


@dataclass(frozen=True)
class NullnessUpdate:
    concept: str
    old_nullness: float
    new_nullness: float
    delta: float
    timestamp: str


@dataclass
class Citation:
    id: str
    content: str
    source: str
    score: float
    index: int
    quoted_text: str


@dataclass
class AnswerComposition:
    answer: str
    citations: List[Citation]
    confidence: float
    rationale: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RankingResult:
    evidence: List[Evidence]
    answer: str
    confidence: float
    nullness: float
    mode: RankingMode
    concept: str = ""
    citations: List[Citation] = field(default_factory=list)
    rationale: str = ""
    parameters: Optional[VOLaMParameters] = None
    empathy_profile: Optional[str] = None
