import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

REQUEST_TIMEOUT = 30


@dataclass(frozen=True)
class CountryFeature:
    """A boundary feature with its decoded emissions history.

    `emissions` maps year -> kt CO2 equivalent, or None where there is no data.
    """

    id: str
    name: str
    geometry: Optional[dict]
    emissions: Dict[int, Optional[float]]

    def value_for(self, year: int) -> Optional[float]:
        return self.emissions.get(year)


def _decode_value(value: Any) -> Optional[float]:
    # "" is the no-data marker written by the merge step
    if value is None or value == "":
        return None
    return float(value)


def decode_emissions(raw: Any) -> Dict[int, Optional[float]]:
    """
    Decode a feature's emissions property into year -> value.

    Map renderers tend to hand nested properties back as JSON text, so a string
    is parsed first; invalid JSON raises json.JSONDecodeError.
    """
    if isinstance(raw, str):
        raw = json.loads(raw)
    if raw is None:
        return {}
    return {int(year): _decode_value(value) for year, value in raw.items()}


def decode_feature(raw: dict) -> CountryFeature:
    properties = raw.get("properties") or {}
    return CountryFeature(
        id=str(raw["id"]),
        name=properties.get("name", str(raw["id"])),
        geometry=raw.get("geometry"),
        emissions=decode_emissions(properties.get("emissions")),
    )


def decode_collection(collection: dict) -> List[CountryFeature]:
    return [decode_feature(feature) for feature in collection.get("features", [])]


def fetch_collection(location: str) -> dict:
    """Read the combined FeatureCollection from a path or an http(s) URL."""
    if location.startswith(("http://", "https://")):
        response = requests.get(location, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        return response.json()

    path = Path(location)
    if not path.exists():
        raise FileNotFoundError(f"Combined GeoJSON not found: {path.resolve()}")
    return json.loads(path.read_text(encoding="utf-8"))


def load_features(location: str) -> List[CountryFeature]:
    return decode_collection(fetch_collection(location))


def to_geojson(features: List[CountryFeature]) -> dict:
    """Geometry-only FeatureCollection for the map layer, keyed by feature id."""
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "id": f.id, "properties": {"name": f.name}, "geometry": f.geometry}
            for f in features
        ],
    }
