import sys
from pathlib import Path
import streamlit as st

# Ensure project root is on path when running via `streamlit run`
ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from src.config import Settings  # noqa: E402

settings = Settings()

st.set_page_config(page_title="Data Dictionary", layout="wide")
st.title("Data Dictionary")

st.markdown(f"""
**Glossary**
- `id`: country code (ISO 3166-1 alpha-3), the join key between the boundaries and the emissions table.
- `name`: country display name from the boundary file.
- `emissions`: methane emissions per year, in kt of CO2 equivalent. An empty value means no data.
- `percentile`: position of the country's quantile bucket, 0-100. The countries with data for the
  selected year are split into {settings.n_buckets} equally populated buckets.
- `rank`: 1 is the largest emitter of the selected year. Countries with equal values share the better rank.

**Sharing a view**
- `/year/<year>?lat=<lat>&lng=<lng>&zoom=<zoom>` reproduces a map view.
- In this app the same values travel as `?year=..&lat=..&lng=..&zoom=..`.

**Notes**
- Countries without data for a year are drawn in black and are left out of both percentiles and ranks.
- Boundaries with no matching row in the emissions table are not drawn at all.
- Aggregates in the source table (regions, income groups) have no boundary and are reported as missing at build time.
""")
