import sys
from pathlib import Path
import streamlit as st
import plotly.express as px

# Ensure project root is on path when running via `streamlit run`
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from app.utils import format_large_number, load_csv, load_emission_features  # noqa: E402
from src.classify import classify_year, ranking_table  # noqa: E402
from src.config import Paths, Settings, data_location  # noqa: E402
from src.view_state import ViewState, clamp_year, view_from_query_params  # noqa: E402

settings = Settings()

st.set_page_config(page_title="Country Ranking", layout="wide")
st.title("Country Ranking")

features = load_emission_features(data_location())
if not features:
    st.warning("No emissions data loaded. Build data/processed/country-emissions.geo.json and retry.")
    st.stop()

initial = view_from_query_params(st.query_params.to_dict(), ViewState())
year = st.sidebar.slider(
    "Year",
    settings.min_year,
    settings.max_year,
    clamp_year(initial.year, settings),
)
top_n = st.sidebar.slider("Top N", 5, 50, 15)

ranking = ranking_table(classify_year(features, year, settings.n_buckets))

col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Countries ranked", format_large_number(len(ranking)))
with col2:
    st.metric("Countries without data", format_large_number(len(features) - len(ranking)))
with col3:
    top_share = ranking["emissions"].head(top_n).sum() / max(ranking["emissions"].sum(), 1e-9) if not ranking.empty else 0
    st.metric(f"Share of top {top_n}", f"{top_share:.1%}")

st.subheader(f"Top {min(top_n, len(ranking))} emitters in {year}")
st.dataframe(ranking.head(top_n), use_container_width=True, hide_index=True)

chart_top = ranking.head(top_n)
if not chart_top.empty:
    fig = px.bar(chart_top, x="name", y="emissions", color="percentile",
                 title=f"Methane emissions by country, {year} (kt CO2e)")
    st.plotly_chart(fig, use_container_width=True)

coverage = load_csv(str(Paths().coverage))
if not coverage.empty:
    st.subheader("Data coverage by year")
    st.line_chart(coverage.set_index("year")[["countries_with_data", "countries_missing"]])
