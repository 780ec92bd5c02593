from typing import List, Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import requests
import streamlit as st

from src.classify import NO_DATA_BUCKET, NO_DATA_LABEL, ClassifiedFeature, rank_label
from src.config import Settings
from src.features import CountryFeature, load_features
from src.view_state import ViewState, view_to_query_params

NO_DATA_CATEGORY = "No data"


@st.cache_data(show_spinner=False)
def load_csv(path: str) -> pd.DataFrame:
    """Load a CSV with caching; a missing file gives an empty frame."""
    try:
        return pd.read_csv(path)
    except FileNotFoundError:
        return pd.DataFrame()


@st.cache_data(show_spinner=False)
def _cached_features(location: str) -> List[CountryFeature]:
    return load_features(location)


def load_emission_features(location: str) -> List[CountryFeature]:
    """Load the combined GeoJSON with caching and friendly error handling.

    Failures are not cached, so a later build or a recovered host is picked
    up on the next rerun.
    """
    try:
        return _cached_features(location)
    except FileNotFoundError:
        st.warning(f"Missing file: {location}. Run `python main.py` to build it.")
        return []
    except requests.RequestException as exc:
        st.error(f"Failed to fetch {location}: {exc}")
        return []


def format_large_number(x: float) -> str:
    """Human-friendly large number formatting for KPIs."""
    try:
        x = float(x)
    except (TypeError, ValueError):
        return "-"
    if x >= 1_000_000_000:
        return f"{x/1_000_000_000:.1f}B"
    if x >= 1_000_000:
        return f"{x/1_000_000:.1f}M"
    if x >= 1_000:
        return f"{x/1_000:.1f}K"
    return f"{x:.0f}"


def format_emissions(value) -> str:
    if value is None:
        return NO_DATA_LABEL
    return f"{value:,.1f}"


def url_query_params(view: ViewState) -> dict:
    """Query parameters mirrored into the browser URL (all strings)."""
    params = {"year": view.year, **view_to_query_params(view)}
    return {key: str(value) for key, value in params.items()}


def classified_frame(classified: Sequence[ClassifiedFeature]) -> pd.DataFrame:
    """One row per feature with the labels the map and the tooltip need."""
    rows = []
    for c in classified:
        percentile = c.percentile
        rows.append({
            "id": c.feature.id,
            "name": c.feature.name,
            "year": c.year,
            "emissions": c.value,
            "bucket": c.bucket,
            "bucket_label": NO_DATA_CATEGORY if c.bucket == NO_DATA_BUCKET else str(c.bucket),
            "emissions_label": format_emissions(c.value),
            "percentile_label": NO_DATA_LABEL if percentile is None else str(percentile),
            "rank_label": rank_label(c.rank),
        })
    return pd.DataFrame(rows, columns=[
        "id", "name", "year", "emissions", "bucket", "bucket_label",
        "emissions_label", "percentile_label", "rank_label",
    ])


def build_choropleth(df: pd.DataFrame, geojson: dict, view: ViewState, settings: Settings) -> go.Figure:
    color_map = {str(i): color for i, color in enumerate(settings.color_stops)}
    color_map[NO_DATA_CATEGORY] = settings.no_data_color

    if df.empty:
        fig = go.Figure(go.Choropleth())
    else:
        fig = px.choropleth(
            df,
            geojson=geojson,
            locations="id",
            featureidkey="id",
            color="bucket_label",
            color_discrete_map=color_map,
            category_orders={"bucket_label": list(color_map)},
            custom_data=["name", "year", "emissions_label", "percentile_label", "rank_label"],
        )
        fig.update_traces(
            marker_opacity=0.8,
            hovertemplate=(
                "<b>%{customdata[0]}</b> (%{customdata[1]})<br>"
                "Methane emissions: %{customdata[2]} (kt of CO2 equivalent)<br>"
                "Percentile: %{customdata[3]}<br>"
                "Country Rank: %{customdata[4]}<extra></extra>"
            ),
        )

    fig.update_geos(
        projection_type="natural earth",
        center={"lat": view.latitude, "lon": view.longitude},
        projection_scale=view.zoom,
        showframe=False,
        showcoastlines=False,
        showland=True,
        landcolor="#f2f2f2",
    )
    fig.update_layout(
        height=620,
        margin=dict(l=0, r=0, t=0, b=0),
        showlegend=False,
        # keep the user's pan/zoom between reruns of the same viewport
        uirevision=f"{view.latitude},{view.longitude},{view.zoom}",
    )
    return fig
