# services/comparison.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from domain.errors import InvalidArgument
from domain.fields import get_path, is_blank
from domain.vehicle import VehicleCandidate

MIN_VEHICLES = 2
MAX_VEHICLES = 3


@dataclass(frozen=True)
class SpecRow:
    label: str
    key: str                       # dotted path into the vehicle record
    kind: str = "number"
    compare: Optional[str] = None  # "min" / "max" / None


@dataclass(frozen=True)
class Category:
    name: str
    specs: Tuple[SpecRow, ...]


DEFAULT_CATEGORIES: Tuple[Category, ...] = (
    Category("Price", (
        SpecRow("MSRP", "price.msrp", "currency", "min"),
        SpecRow("Effective price", "effectivePrice", "currency", "min"),
    )),
    Category("Range & Efficiency", (
        SpecRow("EPA range", "specifications.range.epa", "miles", "max"),
        SpecRow("Combined efficiency", "specifications.efficiency.mpge_combined", "mpge", "max"),
    )),
    Category("Charging", (
        SpecRow("DC fast charging", "specifications.charging.dc_max_kw", "kw", "max"),
        SpecRow("10-80% charge time", "specifications.charging.time_10_80_minutes", "minutes", "min"),
    )),
    Category("Performance", (
        SpecRow("0-60 mph", "specifications.performance.acceleration_0_60", "seconds", "min"),
        SpecRow("Top speed", "specifications.performance.top_speed_mph", "mph", "max"),
        SpecRow("Horsepower", "specifications.performance.horsepower", "hp", "max"),
    )),
    Category("Practicality", (
        SpecRow("Seating", "specifications.dimensions.seating_capacity", "seats", "max"),
        SpecRow("Cargo volume", "specifications.dimensions.cargo_volume_cubic_feet", "feet3", "max"),
        SpecRow("Body type", "bodyType", "string"),
    )),
    Category("Scores", (
        SpecRow("Technology", "techScore", "number", "max"),
        SpecRow("Eco", "ecoScore", "number", "max"),
    )),
)


def _num_text(v: Any) -> str:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return str(v)
    return f"{int(f):,}" if f.is_integer() else f"{f:,.1f}"


_SUFFIXES = {
    "minutes": " min",
    "mph": " mph",
    "hp": " hp",
    "mpge": " MPGe",
    "feet3": " ft³",
    "seats": " seats",
    "kw": " kW",
    "miles": " mi",
    "seconds": " s",
}


def format_value(value: Any, kind: str) -> str:
    if is_blank(value):
        return "N/A"
    if kind == "currency":
        try:
            return f"${int(round(float(value), 0)):,}"
        except (TypeError, ValueError):
            return "N/A"
    if kind == "string":
        return str(value)
    if kind in _SUFFIXES:
        return f"{_num_text(value)}{_SUFFIXES[kind]}"
    return _num_text(value)


def _record(v: Union[VehicleCandidate, Mapping[str, Any]]) -> Dict[str, Any]:
    if isinstance(v, VehicleCandidate):
        return v.to_record()
    if isinstance(v, Mapping):
        return VehicleCandidate.from_record(v).to_record()
    raise InvalidArgument(f"vehicle must be a VehicleCandidate or mapping, got {type(v).__name__}")


def _as_float(v: Any) -> Optional[float]:
    if is_blank(v):
        return None
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _winners(values: List[Any], rule: Optional[str]) -> List[bool]:
    if rule not in ("min", "max"):
        return [False] * len(values)
    nums = [_as_float(v) for v in values]
    present = [n for n in nums if n is not None]
    if not present:
        return [False] * len(values)
    best = min(present) if rule == "min" else max(present)
    return [n is not None and n == best for n in nums]


def compare_vehicles(
    vehicles: Sequence[Union[VehicleCandidate, Mapping[str, Any]]],
    categories: Sequence[Category] = DEFAULT_CATEGORIES,
) -> Dict[str, Any]:
    """Side-by-side comparison of 2-3 vehicles, marking the best value per spec."""
    if vehicles is None or not (MIN_VEHICLES <= len(vehicles) <= MAX_VEHICLES):
        raise InvalidArgument(f"Must compare {MIN_VEHICLES}-{MAX_VEHICLES} vehicles")

    records = [_record(v) for v in vehicles]
    out: Dict[str, Any] = {
        "vehicles": [
            {"id": r.get("id"), "name": " ".join(str(r[k]) for k in ("year", "make", "model") if r.get(k))}
            for r in records
        ],
        "categories": [],
    }

    for cat in categories:
        specs = []
        for spec in cat.specs:
            raw = [get_path(r, spec.key) for r in records]
            flags = _winners(raw, spec.compare)
            specs.append({
                "name": spec.label,
                "values": [
                    {"value": None if is_blank(v) else v, "formatted": format_value(v, spec.kind), "winner": w}
                    for v, w in zip(raw, flags)
                ],
            })
        out["categories"].append({"name": cat.name, "specs": specs})
    return out
