"""
Empathy profile registry.

Profiles are loaded once from a JSON file shaped like:

    {
      "default": {"name": "Default Profile", "stakeholders": {"general_public": 0.4, ...}},
      "climate_focused": {...}
    }

The registry holds an immutable snapshot; registering or replacing profiles
swaps the whole snapshot so readers never see a half-updated mapping.
"""

from __future__ import annotations

import json
import math
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from volam.constants.config import BUILTIN_EMPATHY_PROFILES, DEFAULT_PROFILE_NAME, DEFAULT_STAKEHOLDER_WEIGHTS
from volam.core.logger import get_logger
from volam.core.types import EmpathyProfile

logger = get_logger(__name__)


def normalize_stakeholder_key(stakeholder: str) -> str:
    return "_".join(str(stakeholder).lower().split())


def normalize_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    """
    Scale caller-supplied weights so they sum to 1.0.

    A zero (or non-finite) total falls back to the default profile weights
    rather than producing NaNs.
    """
    # keys that normalize to the same stakeholder are merged
    merged: Dict[str, float] = {}
    for stakeholder, weight in weights.items():
        key = normalize_stakeholder_key(stakeholder)
        merged[key] = merged.get(key, 0.0) + float(weight)

    total = sum(merged.values())
    if not merged or total <= 0.0 or not math.isfinite(total):
        logger.warning("[EmpathyProfiles] Weights sum to zero, substituting default profile weights")
        return dict(DEFAULT_STAKEHOLDER_WEIGHTS)
    return {k: w / total for k, w in merged.items()}


def profile_from_dict(profile_id: str, data: Mapping[str, Any]) -> EmpathyProfile:
    stakeholders = data.get("stakeholders")
    if not isinstance(stakeholders, Mapping):
        raise ValueError(f"Profile '{profile_id}' is missing a stakeholders mapping")
    return EmpathyProfile(
        id=profile_id,
        name=str(data.get("name") or profile_id),
        stakeholders={normalize_stakeholder_key(k): float(v) for k, v in stakeholders.items()},
        description=data.get("description"),
    )


def build_custom_profile(weights: Mapping[str, float], profile_id: str = "custom") -> EmpathyProfile:
    """Caller-supplied profile, re-normalized before use."""
    return EmpathyProfile(id=profile_id, name=profile_id, stakeholders=normalize_weights(weights))


def _builtin_profiles() -> Dict[str, EmpathyProfile]:
    return {pid: profile_from_dict(pid, data) for pid, data in BUILTIN_EMPATHY_PROFILES.items()}


def load_profiles(path: Optional[str]) -> Dict[str, EmpathyProfile]:
    """
    Read profiles from a JSON file. A missing or invalid file yields the
    built-in profiles; a file without "default" gets the built-in default.
    """
    if not path:
        return _builtin_profiles()

    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(raw, dict) or not raw:
            raise ValueError("profile file must contain a non-empty JSON object")
        profiles = {pid: profile_from_dict(pid, data) for pid, data in raw.items()}
    except (OSError, ValueError) as e:
        logger.warning(f"[EmpathyProfiles] Failed to load profiles from {path}, using defaults: {e}")
        return _builtin_profiles()

    if DEFAULT_PROFILE_NAME not in profiles:
        profiles[DEFAULT_PROFILE_NAME] = _builtin_profiles()[DEFAULT_PROFILE_NAME]
    logger.info(f"[EmpathyProfiles] Loaded {len(profiles)} profiles from {path}")
    return profiles


class EmpathyProfileRegistry:
    def __init__(self, profiles: Optional[Mapping[str, EmpathyProfile]] = None):
        initial = dict(profiles) if profiles else _builtin_profiles()
        if DEFAULT_PROFILE_NAME not in initial:
            initial[DEFAULT_PROFILE_NAME] = _builtin_profiles()[DEFAULT_PROFILE_NAME]
        self._profiles: Mapping[str, EmpathyProfile] = MappingProxyType(initial)
        self._write_lock = threading.Lock()

    @classmethod
    def from_file(cls, path: Optional[str]) -> "EmpathyProfileRegistry":
        return cls(load_profiles(path))

    def get(self, name: str) -> Optional[EmpathyProfile]:
        return self._profiles.get(name)

    def resolve(self, name: Optional[str]) -> EmpathyProfile:
        """Return the named profile, falling back to "default" for unknown names."""
        profiles = self._profiles
        profile = profiles.get(name or DEFAULT_PROFILE_NAME)
        if profile is None:
            logger.warning(f"[EmpathyProfiles] Unknown profile '{name}', falling back to '{DEFAULT_PROFILE_NAME}'")
            profile = profiles[DEFAULT_PROFILE_NAME]
        return profile

    def names(self) -> List[str]:
        return list(self._profiles.keys())

    def register(self, profile_id: str, weights: Mapping[str, float], name: Optional[str] = None) -> EmpathyProfile:
        """Normalize caller-supplied weights and publish them under profile_id."""
        profile = build_custom_profile(weights, profile_id)
        if name:
            profile = EmpathyProfile(id=profile_id, name=name, stakeholders=profile.stakeholders)
        with self._write_lock:
            updated = dict(self._profiles)
            updated[profile_id] = profile
            self._profiles = MappingProxyType(updated)
        logger.info(f"[EmpathyProfiles] Registered profile '{profile_id}' ({len(profile.stakeholders)} stakeholders)")
        return profile

    def replace_all(self, profiles: Mapping[str, EmpathyProfile]) -> None:
        updated = dict(profiles)
        if DEFAULT_PROFILE_NAME not in updated:
            updated[DEFAULT_PROFILE_NAME] = _builtin_profiles()[DEFAULT_PROFILE_NAME]
        with self._write_lock:
            self._profiles = MappingProxyType(updated)
        logger.info(f"[EmpathyProfiles] Replaced registry with {len(updated)} profiles")
