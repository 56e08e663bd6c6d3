# matching/catalog.py
from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from domain.errors import InvalidArgument
from domain.fields import is_blank
from domain.vehicle import DEFAULT_ECO_SCORE, DEFAULT_TECH_SCORE, VehicleCandidate
from observability.logging import get_logger

logger = get_logger("matching.catalog")

DEFAULT_CATALOG_PATH = "data/vehicles.json"

# flattened column -> default when absent
EXPECTED_COLUMNS: Dict[str, Any] = {
    "make": np.nan,
    "model": np.nan,
    "year": np.nan,
    "bodyType": np.nan,
    "price.msrp": np.nan,
    "price.incentives.federal": 0,
    "price.incentives.state": 0,
    "price.incentives.local": 0,
    "specifications.range.epa": np.nan,
    "specifications.charging.dc_max_kw": 0,
    "techScore": DEFAULT_TECH_SCORE,
    "ecoScore": DEFAULT_ECO_SCORE,
    "isActive": True,
}


# ---------------- Catalog IO ----------------
def load_catalog(path: Optional[str] = None) -> pd.DataFrame:
    path = path or os.getenv("EVMATCH_CATALOG", DEFAULT_CATALOG_PATH)
    if not os.path.exists(path):
        raise FileNotFoundError(f"Catalog not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext == ".parquet":
        df = pd.read_parquet(path)
    elif ext == ".csv":
        df = pd.read_csv(path)
    elif ext in (".json", ".jsonl"):
        with open(path, "r", encoding="utf-8") as f:
            if ext == ".jsonl":
                records = [json.loads(line) for line in f if line.strip()]
            else:
                records = json.load(f)
        if isinstance(records, dict):
            records = records.get("vehicles", [])
        df = pd.json_normalize(records)
    else:
        raise ValueError(f"Unsupported catalog format: {ext or path}")

    logger.info("Loaded %d catalog rows from %s", len(df), path)
    return df


def preprocess_catalog(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    if df.empty:
        return df

    # nested dict columns (e.g. parquet structs) -> dotted names
    nested = [c for c in df.columns if df[c].map(lambda x: isinstance(x, dict)).any()]
    if nested:
        df = pd.json_normalize(df.to_dict(orient="records"))

    for col, default in EXPECTED_COLUMNS.items():
        if col not in df.columns:
            df[col] = default
        elif not (isinstance(default, float) and np.isnan(default)):
            df[col] = df[col].where(df[col].notna(), default)

    active = df["isActive"].map(_truthy).astype(bool)
    dropped = int((~active).sum())
    if dropped:
        logger.info("Dropping %d inactive vehicles", dropped)
    df = df[active].copy()

    df["bodyType"] = df["bodyType"].astype("string").str.strip().str.lower()
    return df.reset_index(drop=True)


def _truthy(x: Any) -> bool:
    if isinstance(x, str):
        return x.strip().lower() not in ("false", "0", "no", "")
    if x is None or (isinstance(x, float) and np.isnan(x)):
        return True
    return bool(x)


def _unflatten(row: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in row.items():
        if value is pd.NA or is_blank(value):
            continue
        cur = out
        parts = str(key).split(".")
        for part in parts[:-1]:
            nxt = cur.get(part)
            if not isinstance(nxt, dict):
                nxt = {}
                cur[part] = nxt
            cur = nxt
        cur[parts[-1]] = value
    return out


def catalog_to_candidates(df: pd.DataFrame) -> List[VehicleCandidate]:
    """Convert catalog rows to candidates, skipping rows that cannot be scored."""
    df = preprocess_catalog(df)
    out: List[VehicleCandidate] = []
    skipped = 0
    for idx, row in enumerate(df.to_dict(orient="records")):
        try:
            out.append(VehicleCandidate.from_record(_unflatten(row)))
        except InvalidArgument as e:
            skipped += 1
            logger.warning("Skipping catalog row %d: %s", idx, e)
    if skipped:
        logger.info("Built %d candidates (%d rows skipped)", len(out), skipped)
    return out
