# agent/orchestrator.py
from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import pandas as pd

from agent.quiz import QuizMappings, process_quiz_answers, validate_answers
from domain.vehicle import VehicleCandidate
from matching.catalog import DEFAULT_CATALOG_PATH, catalog_to_candidates, load_catalog
from matching.config import RecommendationSettings, ScoringConfig
from matching.engine import filter_candidates, rank, summarize_scores
from observability.logging import get_logger

logger = get_logger("agent.orchestrator")

CatalogInput = Union[pd.DataFrame, Iterable[Union[VehicleCandidate, Mapping[str, Any]]]]


def _detect_catalog_path(explicit: Optional[str] = None) -> str:
    if explicit:
        return explicit
    candidates = [
        os.getenv("EVMATCH_CATALOG"),
        DEFAULT_CATALOG_PATH,
    ]
    for p in candidates:
        if p and os.path.exists(p):
            return p
    raise FileNotFoundError("No vehicle catalog found (set EVMATCH_CATALOG or pass catalog_path)")


def _candidates(catalog: Optional[CatalogInput], catalog_path: Optional[str]) -> List[Any]:
    if catalog is None:
        catalog = load_catalog(_detect_catalog_path(catalog_path))
    if isinstance(catalog, pd.DataFrame):
        return catalog_to_candidates(catalog)
    return [c for c in catalog if not (isinstance(c, Mapping) and c.get("isActive") is False)]


def get_recommendations(
    answers: Mapping[Any, Any],
    catalog: Optional[CatalogInput] = None,
    config: Optional[ScoringConfig] = None,
    settings: Optional[RecommendationSettings] = None,
    mappings: Optional[QuizMappings] = None,
    catalog_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Quiz answers -> preferences -> filtered, ranked top-N recommendations.

    Raises InvalidArgument when the answers fail validation.
    """
    cfg = config or ScoringConfig()
    st = settings or RecommendationSettings()

    validate_answers(answers, mappings)
    prefs = process_quiz_answers(answers, mappings)

    pool = filter_candidates(_candidates(catalog, catalog_path), prefs, cfg, limit=st.max_vehicles)
    ranked = rank(pool, prefs, cfg, top_n=st.top_recommendations)
    logger.info("Recommended %d of %d candidates", len(ranked), len(pool))

    return {
        "userPreferences": prefs.to_record(),
        "count": len(ranked),
        "quizScore": summarize_scores(ranked),
        "recommendations": [m.to_record() for m in ranked],
    }
