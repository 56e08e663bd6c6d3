# domain/vehicle.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from domain.errors import InvalidArgument
from domain.fields import as_number, get_path, is_blank, require_number

BODY_TYPES = ("sedan", "suv", "hatchback", "coupe", "truck", "wagon", "convertible")

DEFAULT_ECO_SCORE = 85
DEFAULT_TECH_SCORE = 75


@dataclass(frozen=True)
class Incentives:
    federal: float = 0.0
    state: float = 0.0
    local: float = 0.0

    @property
    def total(self) -> float:
        return self.federal + self.state + self.local


@dataclass(frozen=True)
class VehiclePrice:
    msrp: float
    incentives: Incentives = field(default_factory=Incentives)


@dataclass(frozen=True)
class VehicleCandidate:
    body_type: str
    price: VehiclePrice
    epa_range: float
    dc_max_kw: float = 0.0
    tech_score: float = DEFAULT_TECH_SCORE
    eco_score: float = DEFAULT_ECO_SCORE
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    id: Optional[str] = None
    specifications: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def effective_price(self) -> float:
        # incentives larger than the MSRP never produce a negative price
        return max(0.0, self.price.msrp - self.price.incentives.total)

    @property
    def full_name(self) -> str:
        parts = [str(p) for p in (self.year, self.make, self.model) if p not in (None, "")]
        return " ".join(parts)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "VehicleCandidate":
        """Build a candidate from the nested vehicle document shape."""
        if record is None:
            raise InvalidArgument("vehicle is required")
        if not isinstance(record, Mapping):
            raise InvalidArgument(f"vehicle must be a mapping, got {type(record).__name__}")

        body_type = record.get("bodyType")
        if is_blank(body_type):
            raise InvalidArgument("vehicle.bodyType is required")

        incentives = Incentives(
            federal=as_number(get_path(record, "price.incentives.federal"), "price.incentives.federal", 0.0),
            state=as_number(get_path(record, "price.incentives.state"), "price.incentives.state", 0.0),
            local=as_number(get_path(record, "price.incentives.local"), "price.incentives.local", 0.0),
        )
        price = VehiclePrice(
            msrp=require_number(get_path(record, "price.msrp"), "price.msrp"),
            incentives=incentives,
        )

        year = as_number(record.get("year"), "year")
        ident = record.get("_id", record.get("id"))
        specs = record.get("specifications") or {}

        return cls(
            body_type=str(body_type).strip().lower(),
            price=price,
            epa_range=require_number(get_path(record, "specifications.range.epa"), "specifications.range.epa"),
            dc_max_kw=as_number(get_path(record, "specifications.charging.dc_max_kw"),
                                "specifications.charging.dc_max_kw", 0.0),
            tech_score=as_number(record.get("techScore"), "techScore", DEFAULT_TECH_SCORE),
            eco_score=as_number(record.get("ecoScore"), "ecoScore", DEFAULT_ECO_SCORE),
            make=None if is_blank(record.get("make")) else str(record["make"]),
            model=None if is_blank(record.get("model")) else str(record["model"]),
            year=None if year is None else int(year),
            id=None if is_blank(ident) else str(ident),
            specifications=dict(specs) if isinstance(specs, Mapping) else {},
        )

    def to_record(self) -> Dict[str, Any]:
        specs: Dict[str, Any] = {k: (dict(v) if isinstance(v, Mapping) else v)
                                 for k, v in self.specifications.items()}
        specs.setdefault("range", {})["epa"] = self.epa_range
        specs.setdefault("charging", {})["dc_max_kw"] = self.dc_max_kw
        out: Dict[str, Any] = {
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "bodyType": self.body_type,
            "price": {
                "msrp": self.price.msrp,
                "incentives": {
                    "federal": self.price.incentives.federal,
                    "state": self.price.incentives.state,
                    "local": self.price.incentives.local,
                },
            },
            "specifications": specs,
            "techScore": self.tech_score,
            "ecoScore": self.eco_score,
            "effectivePrice": self.effective_price,
        }
        if self.id is not None:
            out["id"] = self.id
        return out
