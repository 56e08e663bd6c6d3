import json
from pathlib import Path

import pytest

from agent.orchestrator import get_recommendations
from domain.errors import InvalidArgument
from matching.config import RecommendationSettings, ScoringConfig

SAMPLE = Path(__file__).resolve().parents[1] / "data" / "vehicles.json"

ANSWERS = {
    "1": "first-ev",
    "2": "sedan",
    "3": "30k-50k",
    "4": 8,
    "5": "commute",
    "6": ["fast-charging"],
    "8": 7,
}


def _catalog():
    return json.loads(SAMPLE.read_text(encoding="utf-8"))


def test_recommendations_from_records():
    # the inactive Leaf would pass the budget and type filters
    res = get_recommendations(ANSWERS, catalog=_catalog())

    assert res["userPreferences"]["vehicleType"] == "sedan"
    assert res["userPreferences"]["budget"] == {"min": 30000, "max": 50000}

    # sedans plus the similar hatchback, inside 30000 .. 50000 * 1.2 by MSRP
    names = [r["vehicle"]["model"] for r in res["recommendations"]]
    assert set(names) == {"Model 3", "Ioniq 6"}
    assert [r["score"] for r in res["recommendations"]] == [93, 88]
    assert res["count"] == 2
    assert res["quizScore"] == 91
    assert "Fast charging" in res["recommendations"][0]["matchReasons"]


def test_recommendations_from_catalog_path(monkeypatch):
    monkeypatch.setenv("EVMATCH_CATALOG", str(SAMPLE))
    res = get_recommendations({**ANSWERS, "3": "over-100k"})
    assert res["count"] == 0
    assert res["recommendations"] == []
    assert res["quizScore"] is None


def test_top_n_and_pool_limits():
    pool = [d for d in _catalog() if d["bodyType"] in ("sedan", "hatchback")]
    pool = pool * 4
    res = get_recommendations(
        ANSWERS,
        catalog=pool,
        config=ScoringConfig(budget_flexibility=1.5),
        settings=RecommendationSettings(max_vehicles=3, top_recommendations=2),
    )
    assert res["count"] == 2


def test_invalid_answers_rejected():
    with pytest.raises(InvalidArgument):
        get_recommendations({"2": "sedan"}, catalog=[])
