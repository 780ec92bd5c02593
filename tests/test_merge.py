import json

import pandas as pd
import pytest
from pandas.testing import assert_frame_equal
from structlog.testing import capture_logs

from src.exceptions import MalformedInputError
from src.merge import (
    EmissionsRecord,
    coverage_summary,
    find_missing_countries,
    index_by_code,
    merge_emissions_with_countries,
    parse_emissions_rows,
    write_feature_collection,
    year_values_to_mapping,
)


def test_year_values_to_mapping():
    assert year_values_to_mapping([10, "", 30], 1960) == {1960: 10, 1961: "", 1962: 30}


def test_year_values_to_mapping_parses_text_cells():
    mapping = year_values_to_mapping(["10", " ", "2.5"], 1960)

    assert mapping == {1960: 10, 1961: "", 1962: 2.5}
    assert isinstance(mapping[1960], int)


def test_parse_emissions_rows():
    records = parse_emissions_rows([["CountryX", "ABC", "_", "_", 10, "", 30]], 1960)

    assert records == [EmissionsRecord(country="ABC", name="CountryX", years={1960: 10, 1961: "", 1962: 30})]


def test_parse_emissions_rows_rejects_non_numeric_cells():
    with pytest.raises(MalformedInputError, match="Row 2"):
        parse_emissions_rows(
            [
                ["CountryX", "ABC", "_", "_", "10"],
                ["Countryland", "CLD", "_", "_", "ten"],
            ],
            1960,
        )


def test_parse_emissions_rows_rejects_short_rows():
    with pytest.raises(MalformedInputError, match="no country code"):
        parse_emissions_rows([["CountryX"]], 1960)


def test_parse_emissions_rows_rejects_non_finite_numbers():
    with pytest.raises(MalformedInputError, match="finite"):
        parse_emissions_rows([["CountryX", "ABC", "_", "_", "nan"]], 1960)


def test_index_by_code_first_occurrence_wins():
    first = EmissionsRecord(country="ABC", name="First", years={1960: 1})
    second = EmissionsRecord(country="ABC", name="Second", years={1960: 2})

    with capture_logs() as logs:
        index = index_by_code([first, second])

    assert index == {"ABC": first}
    assert logs[0]["event"] == "merge.duplicate_emissions_codes"
    assert logs[0]["codes"] == ["ABC"]


def test_find_missing_countries(boundaries):
    records = parse_emissions_rows(
        [["CountryX", "ABC", "_", "_", 1], ["World", "WLD", "_", "_", 2]], 1960
    )

    with capture_logs() as logs:
        missing = find_missing_countries(boundaries, records)

    assert missing == ["WLD"]
    assert logs == [
        {
            "event": "merge.countries_missing_geojson",
            "n_missing": 1,
            "codes": ["WLD"],
            "log_level": "warning",
        }
    ]


def test_merge_emissions_with_countries(boundaries):
    records = parse_emissions_rows(
        [
            ["CountryX", "ABC", "_", "_", 10, "", 30],
            ["Countryland", "CLD", "_", "_", 1.5, 2.5, ""],
            ["World", "WLD", "_", "_", 100, 200, 300],
        ],
        1960,
    )

    with capture_logs() as logs:
        combined = merge_emissions_with_countries(boundaries, records)

    assert combined["type"] == "FeatureCollection"
    assert [f["id"] for f in combined["features"]] == ["ABC", "CLD"]
    assert combined["features"][0]["properties"] == {
        "name": "CountryX",
        "emissions": {"1960": 10, "1961": "", "1962": 30},
    }
    assert combined["features"][0]["geometry"] == boundaries["features"][0]["geometry"]

    # Boundary without emissions is dropped with a warning
    assert logs == [{"event": "merge.emissions_not_found", "country": "ATA", "log_level": "warning"}]


def test_merge_only_keeps_boundary_ids(boundaries):
    records = parse_emissions_rows([["World", "WLD", "_", "_", 1], ["CountryX", "ABC", "_", "_", 2]], 1960)

    combined = merge_emissions_with_countries(boundaries, records)

    boundary_ids = {f["id"] for f in boundaries["features"]}
    assert {f["id"] for f in combined["features"]} <= boundary_ids
    assert [f["id"] for f in combined["features"]] == ["ABC"]


def test_merge_does_not_modify_boundaries(boundaries):
    before = json.dumps(boundaries, sort_keys=True)
    records = parse_emissions_rows([["CountryX", "ABC", "_", "_", 1]], 1960)

    merge_emissions_with_countries(boundaries, records)

    assert json.dumps(boundaries, sort_keys=True) == before


def test_merge_skips_duplicate_feature_ids(boundaries):
    boundaries["features"].append(
        {"type": "Feature", "id": "ABC", "properties": {"name": "Duplicate"}, "geometry": None}
    )
    records = parse_emissions_rows([["CountryX", "ABC", "_", "_", 1]], 1960)

    with capture_logs() as logs:
        combined = merge_emissions_with_countries(boundaries, records)

    assert [f["properties"]["name"] for f in combined["features"]] == ["CountryX"]
    assert logs[0] == {"event": "merge.duplicate_feature_ids", "ids": ["ABC"], "log_level": "warning"}


def test_write_feature_collection(tmp_path):
    output = tmp_path / "out" / "combined.geo.json"
    collection = {"type": "FeatureCollection", "features": []}

    write_feature_collection(collection, output)

    assert output.read_text() == '{\n  "type": "FeatureCollection",\n  "features": []\n}\n'
    assert not (tmp_path / "out" / "combined.geo.json.tmp").exists()


def test_coverage_summary():
    collection = {
        "type": "FeatureCollection",
        "features": [
            {"id": "ABC", "properties": {"emissions": {"1960": 10, "1961": ""}}},
            {"id": "CLD", "properties": {"emissions": {"1960": 1.5, "1961": 2.5}}},
        ],
    }

    expected = pd.DataFrame(
        {
            "year": [1960, 1961],
            "countries_with_data": [2, 1],
            "countries_missing": [0, 1],
            "pct_missing": [0.0, 50.0],
        }
    )
    assert_frame_equal(coverage_summary(collection), expected, check_dtype=False)


def test_coverage_summary_empty():
    df = coverage_summary({"type": "FeatureCollection", "features": []})

    assert df.empty
    assert list(df.columns) == ["year", "countries_with_data", "countries_missing", "pct_missing"]
