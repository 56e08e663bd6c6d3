import json
from pathlib import Path

import pandas as pd
import pytest

from matching.catalog import catalog_to_candidates, load_catalog, preprocess_catalog

SAMPLE = Path(__file__).resolve().parents[1] / "data" / "vehicles.json"


def _doc(make, model, body="sedan", msrp=40000, epa=300, **extra):
    doc = {
        "_id": f"{make}-{model}".lower(),
        "make": make,
        "model": model,
        "year": 2024,
        "bodyType": body,
        "price": {"msrp": msrp},
        "specifications": {"range": {"epa": epa}},
    }
    doc.update(extra)
    return doc


def test_load_json_and_fill_defaults(tmp_path):
    path = tmp_path / "vehicles.json"
    path.write_text(json.dumps([
        _doc("Tesla", "Model 3", price={"msrp": 40240, "incentives": {"federal": 7500}}),
        _doc("Kia", "EV6", body="SUV", techScore=88, ecoScore=91),
    ]), encoding="utf-8")

    cars = catalog_to_candidates(load_catalog(str(path)))
    assert [c.model for c in cars] == ["Model 3", "EV6"]

    tesla, kia = cars
    assert tesla.effective_price == 40240 - 7500
    assert tesla.price.incentives.state == 0
    assert tesla.tech_score == 75
    assert tesla.eco_score == 85
    assert tesla.dc_max_kw == 0
    assert kia.body_type == "suv"
    assert kia.tech_score == 88
    assert tesla.specifications["range"]["epa"] == 300


def test_inactive_and_malformed_rows_dropped(tmp_path):
    path = tmp_path / "vehicles.json"
    broken = _doc("Broken", "NoPrice")
    del broken["price"]
    path.write_text(json.dumps([
        _doc("Nissan", "Leaf", isActive=False),
        broken,
        _doc("Hyundai", "Ioniq 6"),
    ]), encoding="utf-8")

    cars = catalog_to_candidates(load_catalog(str(path)))
    assert [c.make for c in cars] == ["Hyundai"]


def test_csv_with_dotted_columns(tmp_path):
    path = tmp_path / "vehicles.csv"
    pd.DataFrame([
        {"make": "Chevrolet", "model": "Bolt", "bodyType": "hatchback", "price.msrp": 26500,
         "price.incentives.federal": 7500, "specifications.range.epa": 259,
         "specifications.charging.dc_max_kw": 55},
    ]).to_csv(path, index=False)

    cars = catalog_to_candidates(load_catalog(str(path)))
    assert len(cars) == 1
    assert cars[0].effective_price == 19000
    assert cars[0].dc_max_kw == 55


def test_nested_dataframe_is_flattened():
    df = pd.DataFrame([_doc("Ford", "Mach-E", body="suv", msrp=42995, epa=250)])
    out = preprocess_catalog(df)
    assert "price.msrp" in out.columns
    assert out.loc[0, "techScore"] == 75


def test_missing_catalog():
    with pytest.raises(FileNotFoundError):
        load_catalog("does/not/exist.json")


def test_unsupported_format(tmp_path):
    path = tmp_path / "vehicles.xml"
    path.write_text("<vehicles/>", encoding="utf-8")
    with pytest.raises(ValueError):
        load_catalog(str(path))


def test_bundled_sample_catalog():
    cars = catalog_to_candidates(load_catalog(str(SAMPLE)))
    assert len(cars) == 5
    assert all(c.model != "Leaf" for c in cars)


def test_fields_missing_from_a_row_are_not_invented(tmp_path):
    path = tmp_path / "vehicles.json"
    path.write_text(json.dumps([
        _doc("Kia", "EV9", body="suv", specifications={"range": {"epa": 304}, "dimensions": {"seating_capacity": 7}}),
        _doc("Lucid", "Air", specifications={"range": {"epa": 419}, "performance": {"horsepower": 480}}),
    ]), encoding="utf-8")

    kia, lucid = catalog_to_candidates(load_catalog(str(path)))
    assert "performance" not in kia.specifications
    assert "dimensions" not in lucid.specifications
    assert lucid.specifications["performance"]["horsepower"] == 480
