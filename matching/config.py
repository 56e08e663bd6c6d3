# matching/config.py
"""Immutable scoring configuration, loaded from the environment or built directly in tests."""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

from dotenv import load_dotenv


class ConfigError(ValueError):
    """Raised when a configuration value is missing its expected shape."""
    pass


DEFAULT_SIMILAR_TYPES: Dict[str, tuple] = {
    "sedan": ("hatchback",),
    "suv": ("wagon",),
    "hatchback": ("sedan",),
    "wagon": ("suv",),
}


def _freeze_similar(mapping: Mapping[str, Iterable[str]]) -> Mapping[str, FrozenSet[str]]:
    if not isinstance(mapping, Mapping):
        raise ConfigError(f"similar_types must be a mapping, got {type(mapping).__name__}")
    frozen = {}
    for key, values in mapping.items():
        if isinstance(values, str):
            values = [values]
        frozen[str(key).lower()] = frozenset(str(v).lower() for v in values)
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class ScoringConfig:
    # weights (conventionally summing to 100, not enforced)
    budget_weight: float = 30
    type_weight: float = 25
    range_weight: float = 20
    tech_weight: float = 15
    eco_weight: float = 10

    budget_flexibility: float = 1.2
    over_budget_tolerance: float = 1.1
    range_baseline: float = 300

    similar_types: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: DEFAULT_SIMILAR_TYPES, hash=False
    )

    # reason thresholds
    excellent_range: float = 300
    advanced_tech: float = 90
    eco_friendly: float = 90
    fast_charging: float = 150

    def __post_init__(self) -> None:
        object.__setattr__(self, "similar_types", _freeze_similar(self.similar_types))
        for name in ("budget_weight", "type_weight", "range_weight", "tech_weight", "eco_weight"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")
        if self.budget_flexibility < 1:
            raise ConfigError("budget_flexibility must be >= 1")
        if self.over_budget_tolerance < 1:
            raise ConfigError("over_budget_tolerance must be >= 1")
        if self.range_baseline <= 0:
            raise ConfigError("range_baseline must be > 0")

    def similar_to(self, vehicle_type: Optional[str]) -> FrozenSet[str]:
        if not vehicle_type:
            return frozenset()
        return self.similar_types.get(vehicle_type, frozenset())

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ScoringConfig":
        """Load from environment variables (after reading a .env file if present)."""
        load_dotenv(dotenv_path)
        kwargs: Dict[str, Any] = {}
        for attr, env_name in _ENV_NAMES.items():
            raw = os.getenv(env_name, "").strip()
            if raw:
                kwargs[attr] = _parse_float(raw, env_name)
        raw_similar = os.getenv("SIMILAR_TYPES_MAPPINGS", "").strip()
        if raw_similar:
            kwargs["similar_types"] = parse_json_mapping(raw_similar, "SIMILAR_TYPES_MAPPINGS")
        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> "ScoringConfig":
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown scoring options: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_ENV_NAMES = {
    "budget_weight": "BUDGET_SCORE_WEIGHT",
    "type_weight": "TYPE_SCORE_WEIGHT",
    "range_weight": "RANGE_SCORE_WEIGHT",
    "tech_weight": "TECH_SCORE_WEIGHT",
    "eco_weight": "ECO_SCORE_WEIGHT",
    "budget_flexibility": "BUDGET_FLEXIBILITY",
    "over_budget_tolerance": "OVER_BUDGET_TOLERANCE",
    "range_baseline": "RANGE_BASELINE",
    "excellent_range": "EXCELLENT_RANGE_THRESHOLD",
    "advanced_tech": "ADVANCED_TECH_THRESHOLD",
    "eco_friendly": "ECO_FRIENDLY_THRESHOLD",
    "fast_charging": "FAST_CHARGING_THRESHOLD",
}


@dataclass(frozen=True)
class RecommendationSettings:
    max_vehicles: int = 20
    top_recommendations: int = 5

    def __post_init__(self) -> None:
        if self.max_vehicles <= 0 or self.top_recommendations <= 0:
            raise ConfigError("max_vehicles and top_recommendations must be positive")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "RecommendationSettings":
        load_dotenv(dotenv_path)
        return cls(
            max_vehicles=_parse_int(os.getenv("MAX_RECOMMENDATION_VEHICLES", "20"), "MAX_RECOMMENDATION_VEHICLES"),
            top_recommendations=_parse_int(os.getenv("TOP_RECOMMENDATIONS_COUNT", "5"), "TOP_RECOMMENDATIONS_COUNT"),
        )


def _parse_float(raw: str, env_name: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{env_name} must be a number, got {raw!r}") from e


def _parse_int(raw: str, env_name: str) -> int:
    try:
        return int(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{env_name} must be an integer, got {raw!r}") from e


def parse_json_mapping(raw: str, env_name: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigError(f"{env_name} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{env_name} must be a JSON object")
    return data
