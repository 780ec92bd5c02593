import json

from app import utils
from app.utils import build_choropleth, classified_frame, format_emissions, format_large_number, url_query_params
from src.classify import classify_year
from src.config import Settings
from src.features import to_geojson
from src.view_state import ViewState


def test_url_query_params():
    view = ViewState(year=1990, latitude=30.0, longitude=-10.0, zoom=1.4)

    assert url_query_params(view) == {"year": "1990", "lat": "30.0", "lng": "-10.0", "zoom": "1.4"}


def test_format_helpers():
    assert format_large_number(1_234_567) == "1.2M"
    assert format_large_number(None) == "-"
    assert format_emissions(None) == "No data."
    assert format_emissions(12345.67) == "12,345.7"


def test_classified_frame(features):
    df = classified_frame(classify_year(features, 1970, n_buckets=4))

    alpha = df[df["id"] == "AAA"].iloc[0]
    gamma = df[df["id"] == "CCC"].iloc[0]
    assert (alpha["bucket_label"], alpha["percentile_label"], alpha["rank_label"]) == ("3", "100", "1st")
    assert (gamma["bucket_label"], gamma["emissions_label"], gamma["rank_label"]) == ("No data", "No data.", "No data.")


def test_build_choropleth(features):
    settings = Settings()
    view = ViewState(year=1970)
    df = classified_frame(classify_year(features, 1970, settings.n_buckets))

    fig = build_choropleth(df, to_geojson(features), view, settings)

    assert len(fig.data) > 0
    assert "Country Rank" in fig.data[0].hovertemplate
    assert fig.layout.geo.center.lat == view.latitude


def test_build_choropleth_without_features():
    settings = Settings()

    fig = build_choropleth(classified_frame([]), to_geojson([]), ViewState(), settings)

    assert len(fig.data) == 1


def test_load_emission_features_does_not_cache_failures(tmp_path):
    path = tmp_path / "country-emissions.geo.json"

    assert utils.load_emission_features(str(path)) == []

    path.write_text(json.dumps({
        "type": "FeatureCollection",
        "features": [{"id": "ABC", "properties": {"name": "CountryX", "emissions": {"1970": 1}}}],
    }))

    assert [f.id for f in utils.load_emission_features(str(path))] == ["ABC"]
