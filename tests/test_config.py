from src.config import Paths, Settings, data_location


def test_settings_buckets_match_color_stops():
    settings = Settings()

    assert settings.n_buckets == 20
    assert settings.min_year < settings.max_year


def test_data_location_default(monkeypatch):
    monkeypatch.delenv("METHANE_MAP_DATA", raising=False)
    monkeypatch.delenv("METHANE_MAP_ENV", raising=False)

    assert data_location() == str(Paths().combined)


def test_data_location_production(monkeypatch):
    monkeypatch.delenv("METHANE_MAP_DATA", raising=False)
    monkeypatch.setenv("METHANE_MAP_ENV", "production")

    assert data_location() == Settings().prod_data_location


def test_data_location_override(monkeypatch):
    monkeypatch.setenv("METHANE_MAP_ENV", "production")
    monkeypatch.setenv("METHANE_MAP_DATA", "https://example.org/country-emissions.geo.json")

    assert data_location() == "https://example.org/country-emissions.geo.json"
