"""
Application view state and its URL encoding.

State objects are immutable; every transition returns a new object so the
rendering layer can treat the current state as a plain value.

URL contract: the year is a path segment and the viewport goes in the query,
e.g. ``/year/1990?lat=30.0&lng=-10.0&zoom=1.4``.
"""
import math
import re
from dataclasses import dataclass, replace
from typing import Mapping, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from src.config import Settings

YEAR_PATH = re.compile(r"/year/(-?\d+)/?$")


@dataclass(frozen=True)
class ViewState:
    year: int = Settings.min_year
    latitude: float = Settings.latitude
    longitude: float = Settings.longitude
    zoom: float = Settings.zoom
    bearing: float = 0.0
    pitch: float = 0.0


@dataclass(frozen=True)
class AppState:
    view: ViewState = ViewState()
    # id of the feature under the pointer
    hovered: Optional[str] = None


def clamp_year(year: int, settings: Settings = Settings()) -> int:
    return max(settings.min_year, min(settings.max_year, int(year)))


def with_year(state: AppState, year: int, settings: Settings = Settings()) -> AppState:
    return replace(state, view=replace(state.view, year=clamp_year(year, settings)))


def with_viewport(state: AppState, latitude: float, longitude: float, zoom: float) -> AppState:
    return replace(state, view=replace(state.view, latitude=latitude, longitude=longitude, zoom=zoom))


def with_hover(state: AppState, feature_id: Optional[str]) -> AppState:
    return replace(state, hovered=feature_id)


def clear_hover(state: AppState) -> AppState:
    return replace(state, hovered=None)


def view_to_query_params(view: ViewState) -> dict:
    return {"lat": view.latitude, "lng": view.longitude, "zoom": view.zoom}


def build_view_url(view: ViewState) -> str:
    return f"/year/{view.year}?{urlencode(view_to_query_params(view))}"


def _to_float(raw) -> Optional[float]:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _to_int(raw) -> Optional[int]:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def view_from_query_params(params: Mapping[str, str], default: ViewState = ViewState()) -> ViewState:
    """
    Apply `year`, `lat`, `lng` and `zoom` parameters on top of `default`.

    The viewport is only taken when all three coordinates are present and
    finite (0 is a valid coordinate); anything unparsable falls back to the default.
    """
    view = default
    year = _to_int(params.get("year"))
    if year is not None:
        view = replace(view, year=year)

    lat = _to_float(params.get("lat"))
    lng = _to_float(params.get("lng"))
    zoom = _to_float(params.get("zoom"))
    if lat is not None and lng is not None and zoom is not None:
        view = replace(view, latitude=lat, longitude=lng, zoom=zoom)
    return view


def parse_view_url(url: str, default: ViewState = ViewState()) -> ViewState:
    parsed = urlparse(url)
    params = {key: values[-1] for key, values in parse_qs(parsed.query).items()}

    match = YEAR_PATH.search(parsed.path)
    if match:
        params["year"] = match.group(1)
    return view_from_query_params(params, default)
