import os

import pytest

from matching.config import ConfigError, RecommendationSettings, ScoringConfig


def _no_dotenv(tmp_path):
    return str(tmp_path / "missing.env")


def test_defaults():
    cfg = ScoringConfig()
    assert (cfg.budget_weight, cfg.type_weight, cfg.range_weight, cfg.tech_weight, cfg.eco_weight) == (30, 25, 20, 15, 10)
    assert cfg.budget_flexibility == 1.2
    assert cfg.over_budget_tolerance == 1.1
    assert cfg.range_baseline == 300
    assert cfg.similar_to("sedan") == frozenset({"hatchback"})
    assert cfg.similar_to("truck") == frozenset()
    assert cfg.similar_to(None) == frozenset()


def test_from_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("BUDGET_SCORE_WEIGHT", "40")
    monkeypatch.setenv("RANGE_BASELINE", "250")
    monkeypatch.setenv("FAST_CHARGING_THRESHOLD", "100")
    monkeypatch.setenv("SIMILAR_TYPES_MAPPINGS", '{"SUV": ["Truck", "wagon"]}')
    cfg = ScoringConfig.from_env(_no_dotenv(tmp_path))
    assert cfg.budget_weight == 40
    assert cfg.range_baseline == 250
    assert cfg.fast_charging == 100
    assert cfg.type_weight == 25
    assert cfg.similar_to("suv") == frozenset({"truck", "wagon"})
    assert cfg.similar_to("sedan") == frozenset()


def test_from_env_rejects_bad_values(monkeypatch, tmp_path):
    monkeypatch.setenv("TECH_SCORE_WEIGHT", "lots")
    with pytest.raises(ConfigError, match="TECH_SCORE_WEIGHT"):
        ScoringConfig.from_env(_no_dotenv(tmp_path))


def test_from_env_rejects_bad_json(monkeypatch, tmp_path):
    monkeypatch.setenv("SIMILAR_TYPES_MAPPINGS", "sedan=hatchback")
    with pytest.raises(ConfigError, match="SIMILAR_TYPES_MAPPINGS"):
        ScoringConfig.from_env(_no_dotenv(tmp_path))


def test_reads_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.delenv("ECO_SCORE_WEIGHT", raising=False)
    env = tmp_path / ".env"
    env.write_text("ECO_SCORE_WEIGHT=12\n", encoding="utf-8")
    try:
        cfg = ScoringConfig.from_env(str(env))
    finally:
        os.environ.pop("ECO_SCORE_WEIGHT", None)
    assert cfg.eco_weight == 12


@pytest.mark.parametrize("kwargs", [
    {"budget_flexibility": 0.9},
    {"over_budget_tolerance": 0.5},
    {"range_baseline": 0},
    {"eco_weight": -1},
])
def test_invalid_config_rejected(kwargs):
    with pytest.raises(ConfigError):
        ScoringConfig(**kwargs)


def test_config_is_immutable():
    cfg = ScoringConfig()
    with pytest.raises(AttributeError):
        cfg.budget_weight = 1
    with pytest.raises(TypeError):
        cfg.similar_types["coupe"] = frozenset({"convertible"})


def test_with_overrides():
    cfg = ScoringConfig().with_overrides(range_weight=30, eco_weight=None)
    assert cfg.range_weight == 30
    assert cfg.eco_weight == 10
    with pytest.raises(ConfigError):
        ScoringConfig().with_overrides(speed_weight=5)


def test_recommendation_settings(monkeypatch, tmp_path):
    monkeypatch.setenv("TOP_RECOMMENDATIONS_COUNT", "3")
    st = RecommendationSettings.from_env(_no_dotenv(tmp_path))
    assert st.top_recommendations == 3
    assert st.max_vehicles == 20
    monkeypatch.setenv("MAX_RECOMMENDATION_VEHICLES", "many")
    with pytest.raises(ConfigError):
        RecommendationSettings.from_env(_no_dotenv(tmp_path))
