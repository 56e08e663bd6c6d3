# domain/fields.py
from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from domain.errors import InvalidArgument

_MISSING = object()


def get_path(record: Any, path: str, default: Any = None) -> Any:
    """Read a dotted path ("price.incentives.federal") from nested mappings or objects."""
    cur = record
    for part in path.split("."):
        if cur is None:
            return default
        if isinstance(cur, Mapping):
            cur = cur.get(part, _MISSING)
        else:
            cur = getattr(cur, part, _MISSING)
        if cur is _MISSING:
            return default
    return cur


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return False


def as_number(value: Any, name: str, default: Optional[float] = None) -> Optional[float]:
    """Coerce a record field to float; blank values fall back to `default`."""
    if is_blank(value):
        return default
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    try:
        num = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidArgument(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(num):
        raise InvalidArgument(f"{name} must be finite, got {value!r}")
    return num


def require_number(value: Any, name: str) -> float:
    num = as_number(value, name)
    if num is None:
        raise InvalidArgument(f"{name} is required")
    return num


def as_tags(value: Any) -> frozenset:
    if is_blank(value):
        return frozenset()
    if isinstance(value, str):
        return frozenset(t.strip() for t in value.split(",") if t.strip())
    return frozenset(str(t) for t in value)
