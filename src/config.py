import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

@dataclass(frozen=True)
class Paths:
    raw: Path = Path("data/raw")
    processed: Path = Path("data/processed")
    countries: Path = Path("data/raw/countries.geo.json")
    emissions: Path = Path("data/raw/API_EN.ATM.METH.KT.CE_DS2_en_csv_v2_823144.csv")
    combined: Path = Path("data/processed/country-emissions.geo.json")
    coverage: Path = Path("data/processed/coverage.csv")

@dataclass(frozen=True)
class Settings:
    site_name: str = "Methane Emissions by Country"
    # First year column of the World Bank export
    base_year: int = 1960
    min_year: int = 1970
    max_year: int = 2012
    # Default viewport (lat, lng, zoom)
    latitude: float = 30.0
    longitude: float = -10.0
    zoom: float = 1.4
    debounce_seconds: float = 0.05
    prod_data_location: str = "/a/methane-emissions/data/country-emissions.geo.json"
    no_data_color: str = "#000000"
    color_stops: Tuple[str, ...] = field(default=(
        "#D9E6FF", "#CDDAF6", "#C2CEED", "#B6C2E4", "#ABB7DB",
        "#9FABD2", "#949FC9", "#8993C1", "#7D88B8", "#727CAF",
        "#6670A6", "#5B649D", "#4F5994", "#444D8C", "#394183",
        "#2D357A", "#222A71", "#161E68", "#0B125F", "#000757",
    ))

    @property
    def n_buckets(self) -> int:
        return len(self.color_stops)


def data_location(paths: Paths = Paths(), settings: Settings = Settings()) -> str:
    """Where the app loads the combined file from.

    METHANE_MAP_DATA wins; otherwise METHANE_MAP_ENV=production selects the
    deployed location and anything else the local build output.
    """
    override = os.environ.get("METHANE_MAP_DATA")
    if override:
        return override
    if os.environ.get("METHANE_MAP_ENV", "").lower() == "production":
        return settings.prod_data_location
    return str(paths.combined)
