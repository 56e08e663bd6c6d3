# agent/quiz.py
"""Turns raw quiz answers into scoring preferences.

Answers are keyed by question number:
  "2" vehicle type choice   "3" budget bracket     "4" range importance (1-10)
  "6" charging features     "7" eco features       "8" tech importance (1-10)
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from domain.errors import InvalidArgument
from domain.fields import as_tags, is_blank
from domain.preferences import Budget, UserPreferences
from matching.config import ConfigError, parse_json_mapping

VEHICLE_TYPE_QUESTION = "2"
BUDGET_QUESTION = "3"
RANGE_QUESTION = "4"
CHARGING_QUESTION = "6"
ECO_QUESTION = "7"
TECH_QUESTION = "8"

DEFAULT_BUDGET_BRACKETS: Dict[str, Tuple[float, float]] = {
    "under-30k": (0, 30000),
    "30k-50k": (30000, 50000),
    "50k-70k": (50000, 70000),
    "70k-100k": (70000, 100000),
    "over-100k": (100000, 500000),
}

DEFAULT_VEHICLE_TYPE_CHOICES: Dict[str, str] = {
    "compact": "hatchback",
    "sedan": "sedan",
    "suv": "suv",
    "truck": "truck",
    "luxury": "sedan",
}


@dataclass(frozen=True)
class QuizMappings:
    budget_brackets: Mapping[str, Budget] = field(
        default_factory=lambda: {k: Budget(lo, hi) for k, (lo, hi) in DEFAULT_BUDGET_BRACKETS.items()}
    )
    vehicle_types: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_VEHICLE_TYPE_CHOICES))
    required_answers: Tuple[str, ...] = ("1", "2", "3", "4", "5", "8")
    importance_min: int = 1
    importance_max: int = 10

    def __post_init__(self) -> None:
        object.__setattr__(self, "budget_brackets", MappingProxyType(dict(self.budget_brackets)))
        object.__setattr__(self, "vehicle_types", MappingProxyType(dict(self.vehicle_types)))
        if self.importance_min > self.importance_max:
            raise ConfigError("importance_min must not exceed importance_max")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "QuizMappings":
        load_dotenv(dotenv_path)
        kwargs: Dict[str, Any] = {}

        raw = os.getenv("BUDGET_MAPPINGS", "").strip()
        if raw:
            brackets = {}
            for name, rng in parse_json_mapping(raw, "BUDGET_MAPPINGS").items():
                try:
                    brackets[name] = Budget.from_record(rng)
                except InvalidArgument as e:
                    raise ConfigError(f"BUDGET_MAPPINGS[{name!r}]: {e}") from e
            kwargs["budget_brackets"] = brackets

        raw = os.getenv("VEHICLE_TYPE_MAPPINGS", "").strip()
        if raw:
            kwargs["vehicle_types"] = {
                k: str(v).lower() for k, v in parse_json_mapping(raw, "VEHICLE_TYPE_MAPPINGS").items()
            }

        raw = os.getenv("REQUIRED_QUIZ_ANSWERS", "").strip()
        if raw:
            kwargs["required_answers"] = tuple(x.strip() for x in raw.split(",") if x.strip())

        for attr, env_name in (("importance_min", "IMPORTANCE_MIN"), ("importance_max", "IMPORTANCE_MAX")):
            raw = os.getenv(env_name, "").strip()
            if raw:
                try:
                    kwargs[attr] = int(raw)
                except ValueError as e:
                    raise ConfigError(f"{env_name} must be an integer, got {raw!r}") from e
        return cls(**kwargs)


def _answer(answers: Mapping[Any, Any], key: str) -> Any:
    # answers may arrive keyed by str (JSON) or int
    if key in answers:
        return answers[key]
    return answers.get(int(key))


def _importance(value: Any) -> Optional[int]:
    if isinstance(value, bool) or is_blank(value):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    return int(num) if num.is_integer() else None


def validate_answers(answers: Mapping[Any, Any], mappings: Optional[QuizMappings] = None) -> None:
    """Raise InvalidArgument listing every problem with the submitted answers."""
    if not isinstance(answers, Mapping):
        raise InvalidArgument("Answers must be an object")
    m = mappings or QuizMappings()
    errors: List[str] = []

    for key in m.required_answers:
        value = _answer(answers, key)
        if key in (RANGE_QUESTION, TECH_QUESTION):
            label = "Range importance" if key == RANGE_QUESTION else "Tech importance"
            imp = _importance(value)
            if imp is None or not (m.importance_min <= imp <= m.importance_max):
                errors.append(f"{label} must be {m.importance_min}-{m.importance_max}")
        elif is_blank(value) or (isinstance(value, (list, tuple)) and not value):
            errors.append(f"Answer {key} is required")

    if errors:
        raise InvalidArgument("Validation failed: " + "; ".join(errors))


def process_quiz_answers(answers: Mapping[Any, Any], mappings: Optional[QuizMappings] = None) -> UserPreferences:
    m = mappings or QuizMappings()

    bracket = _answer(answers, BUDGET_QUESTION)
    budget = m.budget_brackets.get(bracket) if isinstance(bracket, str) else None

    choice = _answer(answers, VEHICLE_TYPE_QUESTION)
    vehicle_type = m.vehicle_types.get(choice) if isinstance(choice, str) else None

    charging = _answer(answers, CHARGING_QUESTION)
    eco = _answer(answers, ECO_QUESTION)

    return UserPreferences(
        budget=budget,
        vehicle_type=vehicle_type,
        range_importance=_importance(_answer(answers, RANGE_QUESTION)),
        tech_importance=_importance(_answer(answers, TECH_QUESTION)),
        charging_features=as_tags(charging) if isinstance(charging, (list, tuple)) else frozenset(),
        eco_features=as_tags(eco) if isinstance(eco, (list, tuple)) else frozenset(),
    )
