from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from volam.constants.config import DEFAULT_PROFILE_NAME
from volam.core.config import settings


class RankRequest(BaseModel):
    query: str = Field(min_length=1)
    mode: Literal["baseline", "volam"] = settings.DEFAULT_MODE
    k: int = Field(default=settings.DEFAULT_TOP_K, ge=1)
    alpha: float = Field(default=settings.VOLAM_ALPHA, ge=0.0, le=1.0)
    beta: float = Field(default=settings.VOLAM_BETA, ge=0.0, le=1.0)
    gamma: float = Field(default=settings.VOLAM_GAMMA, ge=0.0, le=1.0)
    empathy_profile: str = DEFAULT_PROFILE_NAME
    custom_profile: Optional[Dict[str, float]] = None

    @field_validator("query")
    @classmethod
    def _query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v

    @field_validator("custom_profile")
    @classmethod
    def _weights_non_negative(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is not None and any(w < 0 for w in v.values()):
            raise ValueError("stakeholder weights must be non-negative")
        return v


class NullnessUpdateRequest(BaseModel):
    concept: str = Field(min_length=1, max_length=100)
    action: Literal["support", "refute"]
    evidence_strength: float = Field(ge=0.0, le=1.0)
    k: float = Field(default=settings.NULLNESS_K, ge=0.0, le=2.0)
    lam: float = Field(default=settings.NULLNESS_LAMBDA, ge=0.0, le=1.0)


class NullnessUpdateResponse(BaseModel):
    concept: str
    old_nullness: float
    new_nullness: float
    delta_nullness: float
    timestamp: str


class HistoryRequest(BaseModel):
    concept: str = Field(min_length=1, max_length=100)
    limit: int = Field(default=100, ge=1, le=1000)
    window_hours: int = Field(default=24, ge=1)


class HistoryPoint(BaseModel):
    timestamp: str
    nullness: float
    trigger: str
    confidence: Optional[float] = None


class HistoryResponse(BaseModel):
    concept: str
    history: List[HistoryPoint]
    delta_nullness: float
    current_nullness: Optional[float]
    total_entries: int
    window_hours: int
