# domain/preferences.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping, Optional

from domain.errors import InvalidArgument
from domain.fields import as_number, as_tags, is_blank


@dataclass(frozen=True)
class Budget:
    min: float
    max: float

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Budget":
        if not isinstance(record, Mapping):
            raise InvalidArgument(f"budget must be a mapping with min/max, got {record!r}")
        lo = as_number(record.get("min"), "budget.min", 0.0)
        hi = as_number(record.get("max"), "budget.max")
        if hi is None:
            raise InvalidArgument("budget.max is required")
        if lo > hi:
            raise InvalidArgument(f"budget.min ({lo:g}) is above budget.max ({hi:g})")
        return cls(min=lo, max=hi)


@dataclass(frozen=True)
class UserPreferences:
    budget: Optional[Budget] = None
    vehicle_type: Optional[str] = None
    range_importance: Optional[int] = None
    tech_importance: Optional[int] = None
    charging_features: FrozenSet[str] = field(default_factory=frozenset)
    eco_features: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "UserPreferences":
        """Build preferences from the camelCase shape stored on the user document."""
        if record is None:
            raise InvalidArgument("preferences are required")
        if not isinstance(record, Mapping):
            raise InvalidArgument(f"preferences must be a mapping, got {type(record).__name__}")

        budget = record.get("budget")
        vtype = record.get("vehicleType")
        return cls(
            budget=None if is_blank(budget) else Budget.from_record(budget),
            vehicle_type=None if is_blank(vtype) else str(vtype).strip().lower(),
            range_importance=_importance(record.get("rangeImportance"), "rangeImportance"),
            tech_importance=_importance(record.get("techImportance"), "techImportance"),
            charging_features=as_tags(record.get("chargingFeatures")),
            eco_features=as_tags(record.get("ecoFeatures")),
        )

    def to_record(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.budget is not None:
            out["budget"] = {"min": self.budget.min, "max": self.budget.max}
        if self.vehicle_type is not None:
            out["vehicleType"] = self.vehicle_type
        if self.range_importance is not None:
            out["rangeImportance"] = self.range_importance
        if self.tech_importance is not None:
            out["techImportance"] = self.tech_importance
        if self.charging_features:
            out["chargingFeatures"] = sorted(self.charging_features)
        if self.eco_features:
            out["ecoFeatures"] = sorted(self.eco_features)
        return out


def _importance(value: Any, name: str) -> Optional[int]:
    num = as_number(value, name)
    return None if num is None else int(num)
