# matching/engine.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from domain.errors import InvalidArgument
from domain.preferences import UserPreferences
from domain.vehicle import VehicleCandidate
from matching.config import ScoringConfig
from observability.logging import get_logger

logger = get_logger("matching.engine")

VehicleInput = Union[VehicleCandidate, Mapping[str, Any]]
PreferencesInput = Union[UserPreferences, Mapping[str, Any]]

GREAT_VALUE_SHARE = 0.67
OVER_BUDGET_SHARE = 0.5
SIMILAR_TYPE_SHARE = 0.6
FAST_CHARGING_TAG = "fast-charging"


# ---------------- Results ----------------
@dataclass(frozen=True)
class MatchResult:
    score: int
    reasons: Tuple[str, ...]
    breakdown: Mapping[str, float] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class RankedMatch:
    vehicle: VehicleCandidate
    score: int
    reasons: Tuple[str, ...]

    def to_record(self) -> Dict[str, Any]:
        return {
            "vehicle": self.vehicle.to_record(),
            "score": self.score,
            "matchReasons": list(self.reasons),
        }


# ---------------- Input coercion ----------------
def _as_vehicle(vehicle: Optional[VehicleInput]) -> VehicleCandidate:
    if vehicle is None:
        raise InvalidArgument("vehicle is required")
    if isinstance(vehicle, VehicleCandidate):
        return vehicle
    if isinstance(vehicle, Mapping):
        return VehicleCandidate.from_record(vehicle)
    raise InvalidArgument(f"vehicle must be a VehicleCandidate or mapping, got {type(vehicle).__name__}")


def _as_preferences(preferences: Optional[PreferencesInput]) -> UserPreferences:
    if preferences is None:
        raise InvalidArgument("preferences are required")
    if isinstance(preferences, UserPreferences):
        return preferences
    if isinstance(preferences, Mapping):
        return UserPreferences.from_record(preferences)
    raise InvalidArgument(f"preferences must be UserPreferences or mapping, got {type(preferences).__name__}")


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


# ---------------- Sub-scores ----------------
def budget_score(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> float:
    if prefs.budget is None:
        return 0.0
    price = vehicle.effective_price
    lo, hi = prefs.budget.min, prefs.budget.max
    if lo <= price <= hi:
        return float(config.budget_weight)
    if price < lo:
        return config.budget_weight * GREAT_VALUE_SHARE
    if price <= hi * config.over_budget_tolerance:
        return config.budget_weight * OVER_BUDGET_SHARE
    return 0.0


def type_score(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> float:
    if prefs.vehicle_type is not None and vehicle.body_type == prefs.vehicle_type:
        return float(config.type_weight)
    if vehicle.body_type in config.similar_to(prefs.vehicle_type):
        return config.type_weight * SIMILAR_TYPE_SHARE
    return 0.0


def range_score(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> float:
    # capped at the category weight
    if not prefs.range_importance:
        return 0.0
    raw = (vehicle.epa_range / config.range_baseline) * prefs.range_importance * (config.range_weight / 10)
    return min(raw, float(config.range_weight))


def tech_score(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> float:
    # uncapped: importance above 10 is rejected by the quiz layer, not here
    if not prefs.tech_importance:
        return 0.0
    return (vehicle.tech_score / 100) * prefs.tech_importance * (config.tech_weight / 10)


def eco_score(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> float:
    return (vehicle.eco_score / 100) * config.eco_weight


SUB_SCORES: Tuple[Tuple[str, Callable[[VehicleCandidate, UserPreferences, ScoringConfig], float]], ...] = (
    ("budget", budget_score),
    ("type", type_score),
    ("range", range_score),
    ("tech", tech_score),
    ("eco", eco_score),
)


# ---------------- Reasons ----------------
def _within_budget(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return p.budget is not None and v.effective_price <= p.budget.max


def _great_value(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return p.budget is not None and v.effective_price < p.budget.min


def _perfect_size(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return p.vehicle_type is not None and v.body_type == p.vehicle_type


def _excellent_range(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return v.epa_range > c.excellent_range


def _advanced_tech(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return v.tech_score > c.advanced_tech


def _eco_friendly(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return v.eco_score > c.eco_friendly


def _fast_charging(v: VehicleCandidate, p: UserPreferences, c: ScoringConfig) -> bool:
    return FAST_CHARGING_TAG in p.charging_features and v.dc_max_kw >= c.fast_charging


# Output order follows this tuple.
REASON_RULES: Tuple[Tuple[Callable[[VehicleCandidate, UserPreferences, ScoringConfig], bool], str], ...] = (
    (_within_budget, "Within budget"),
    (_great_value, "Great value"),
    (_perfect_size, "Perfect size match"),
    (_excellent_range, "Excellent range"),
    (_advanced_tech, "Advanced technology"),
    (_eco_friendly, "Eco-friendly"),
    (_fast_charging, "Fast charging"),
)


def match_reasons(vehicle: VehicleCandidate, prefs: UserPreferences, config: ScoringConfig) -> List[str]:
    return [label for predicate, label in REASON_RULES if predicate(vehicle, prefs, config)]


# ---------------- Public API ----------------
def score(
    vehicle: Optional[VehicleInput],
    preferences: Optional[PreferencesInput],
    config: Optional[ScoringConfig] = None,
) -> MatchResult:
    """Score one vehicle against a user's preferences.

    Returns the rounded total, the qualifying reasons in fixed order, and the
    unrounded per-factor breakdown. Raises InvalidArgument when either input
    is missing or malformed.
    """
    v = _as_vehicle(vehicle)
    p = _as_preferences(preferences)
    cfg = config or ScoringConfig()

    breakdown = {name: fn(v, p, cfg) for name, fn in SUB_SCORES}
    total = sum(breakdown.values())
    return MatchResult(
        score=round_half_up(total),
        reasons=tuple(match_reasons(v, p, cfg)),
        breakdown=breakdown,
    )


def rank(
    vehicles: Iterable[VehicleInput],
    preferences: Optional[PreferencesInput],
    config: Optional[ScoringConfig] = None,
    top_n: Optional[int] = None,
) -> List[RankedMatch]:
    """Score every candidate and return the best `top_n`, highest score first.

    Ties keep their input order (sorted() is stable).
    """
    if top_n is not None and top_n < 0:
        raise InvalidArgument(f"top_n must be >= 0, got {top_n}")
    if vehicles is None:
        raise InvalidArgument("vehicles are required")
    p = _as_preferences(preferences)
    cfg = config or ScoringConfig()

    scored: List[RankedMatch] = []
    for raw in vehicles:
        v = _as_vehicle(raw)
        res = score(v, p, cfg)
        scored.append(RankedMatch(vehicle=v, score=res.score, reasons=res.reasons))

    out = sorted(scored, key=lambda m: m.score, reverse=True)
    if top_n is not None:
        out = out[:top_n]
    logger.debug("Ranked %d candidates, returning %d", len(scored), len(out))
    return out


def filter_candidates(
    vehicles: Iterable[VehicleInput],
    preferences: Optional[PreferencesInput],
    config: Optional[ScoringConfig] = None,
    limit: Optional[int] = None,
) -> List[VehicleCandidate]:
    """Pre-select candidates by budget (MSRP, with flexibility) and body type.

    Keeps input order; stops after `limit` matches.
    """
    p = _as_preferences(preferences)
    cfg = config or ScoringConfig()

    allowed_types: Optional[set] = None
    if p.vehicle_type is not None:
        allowed_types = {p.vehicle_type, *cfg.similar_to(p.vehicle_type)}

    out: List[VehicleCandidate] = []
    for raw in vehicles:
        if limit is not None and len(out) >= limit:
            break
        v = _as_vehicle(raw)
        if p.budget is not None:
            if not (p.budget.min <= v.price.msrp <= p.budget.max * cfg.budget_flexibility):
                continue
        if allowed_types is not None and v.body_type not in allowed_types:
            continue
        out.append(v)
    return out


def summarize_scores(matches: Sequence[RankedMatch]) -> Optional[int]:
    """Rounded average score of a recommendation list, None when empty."""
    if not matches:
        return None
    return round_half_up(sum(m.score for m in matches) / len(matches))
