import sys
from pathlib import Path
import streamlit as st
import plotly.express as px
import pandas as pd

# Ensure project root is on path when running via `streamlit run`
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from app.utils import (  # noqa: E402
    build_choropleth,
    classified_frame,
    format_large_number,
    load_emission_features,
    url_query_params,
)
from src.classify import classify_year  # noqa: E402
from src.config import Settings, data_location  # noqa: E402
from src.debounce import Debouncer  # noqa: E402
from src.features import to_geojson  # noqa: E402
from src.view_state import (  # noqa: E402
    AppState,
    ViewState,
    build_view_url,
    clamp_year,
    clear_hover,
    view_from_query_params,
    with_hover,
    with_viewport,
    with_year,
)

settings = Settings()

st.set_page_config(page_title=settings.site_name, layout="wide")
st.title(settings.site_name)

# First run of the session: the URL decides the initial view
if "app_state" not in st.session_state:
    initial = view_from_query_params(st.query_params.to_dict(), ViewState())
    st.session_state["app_state"] = with_year(AppState(view=initial), initial.year, settings)
    st.session_state["url_sync"] = Debouncer(settings.debounce_seconds)
    st.session_state["year"] = clamp_year(initial.year, settings)
    st.session_state["lat"] = max(-90.0, min(90.0, float(initial.latitude)))
    st.session_state["lng"] = max(-180.0, min(180.0, float(initial.longitude)))
    st.session_state["zoom"] = max(0.5, min(10.0, float(initial.zoom)))

state: AppState = st.session_state["app_state"]
url_sync: Debouncer = st.session_state["url_sync"]

features = load_emission_features(data_location())

st.slider(
    "Year",
    min_value=settings.min_year,
    max_value=settings.max_year,
    step=1,
    key="year",
)

st.sidebar.header("View")
st.sidebar.number_input("Latitude", min_value=-90.0, max_value=90.0, step=5.0, key="lat")
st.sidebar.number_input("Longitude", min_value=-180.0, max_value=180.0, step=5.0, key="lng")
st.sidebar.number_input("Zoom", min_value=0.5, max_value=10.0, step=0.2, key="zoom")

new_state = with_year(state, st.session_state["year"], settings)
new_state = with_viewport(new_state, st.session_state["lat"], st.session_state["lng"], st.session_state["zoom"])

# Year changes go to the URL at once; viewport changes are debounced
if new_state.view.year != state.view.year:
    url_sync.cancel()
    st.query_params.from_dict(url_query_params(new_state.view))
elif new_state.view != state.view:
    url_sync.submit(new_state.view)


@st.fragment(run_every=0.25)
def flush_url_sync() -> None:
    view = url_sync.pop_ready()
    if view is not None:
        st.query_params.from_dict(url_query_params(view))


flush_url_sync()

view = new_state.view
classified = classify_year(features, view.year, settings.n_buckets)
df = classified_frame(classified)

col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Countries on the map", format_large_number(len(df)))
with col2:
    with_data = df["emissions"].notna().sum() if not df.empty else 0
    st.metric(f"Countries with data ({view.year})", format_large_number(with_data))
with col3:
    total = df["emissions"].sum() if not df.empty else 0
    st.metric("Total methane emissions (kt CO2e)", format_large_number(total))

fig = build_choropleth(df, to_geojson(features), view, settings)
event = st.plotly_chart(fig, use_container_width=True, on_select="rerun", selection_mode="points", key="map")

points = event.selection.points if event and event.selection else []
if points:
    new_state = with_hover(new_state, points[0].get("location"))
else:
    new_state = clear_hover(new_state)
st.session_state["app_state"] = new_state

st.caption(f"Share this view: `{build_view_url(view)}`")

# Details for the selected country follow the year slider
if new_state.hovered:
    selected = df[df["id"] == new_state.hovered]
    if not selected.empty:
        row = selected.iloc[0]
        st.subheader(f"{row['name']} ({view.year})")
        st.markdown(
            f"- Methane emissions: **{row['emissions_label']}** (kt of CO2 equivalent)\n"
            f"- Percentile: **{row['percentile_label']}**\n"
            f"- Country Rank: **{row['rank_label']}**"
        )
        feature = next(f for f in features if f.id == new_state.hovered)
        history = pd.DataFrame(
            [(year, value) for year, value in sorted(feature.emissions.items()) if value is not None],
            columns=["year", "emissions"],
        )
        if not history.empty:
            fig_history = px.line(history, x="year", y="emissions",
                                  title=f"Methane emissions, {feature.name} (kt CO2e)")
            fig_history.add_vline(x=view.year, line_dash="dot")
            st.plotly_chart(fig_history, use_container_width=True)

st.markdown("""
Data: World Bank, *Methane emissions (kt of CO2 equivalent)* (EN.ATM.METH.KT.CE).
Colors split the countries with data for the selected year into equally sized groups;
black marks countries without data.
""")
