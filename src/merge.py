import json
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence, Union

import pandas as pd
import structlog

from src.exceptions import MalformedInputError

log = structlog.get_logger()

# name, code, indicator name, indicator code
LEADING_COLUMNS = 4

Cell = Union[int, float, str]


@dataclass(frozen=True)
class EmissionsRecord:
    country: str
    name: str
    years: Dict[int, Cell]


def _parse_cell(cell: Cell) -> Cell:
    if isinstance(cell, (int, float)):
        return cell
    text = cell.strip()
    if text == "":
        return ""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = float(text)
    except ValueError:
        raise MalformedInputError(f"Not a number: {cell!r}") from None
    if not math.isfinite(value):
        raise MalformedInputError(f"Not a finite number: {cell!r}")
    return value


def year_values_to_mapping(cells: Sequence[str], base_year: int) -> Dict[int, Cell]:
    """Assign cell i to year base_year + i; blanks stay "" (no data)."""
    return {base_year + i: _parse_cell(cell) for i, cell in enumerate(cells)}


def parse_emissions_rows(rows: List[List[str]], base_year: int) -> List[EmissionsRecord]:
    records = []
    for line, row in enumerate(rows, start=1):
        if len(row) < 2:
            raise MalformedInputError(f"Row {line} has no country code: {row!r}")
        try:
            years = year_values_to_mapping(row[LEADING_COLUMNS:], base_year)
        except MalformedInputError as exc:
            raise MalformedInputError(f"Row {line} ({row[1]}): {exc}") from exc
        records.append(EmissionsRecord(country=row[1], name=row[0], years=years))
    return records


def _duplicates(codes: List[str]) -> List[str]:
    s = pd.Series(codes, dtype="object")
    return s[s.duplicated()].unique().tolist()


def index_by_code(records: List[EmissionsRecord]) -> Dict[str, EmissionsRecord]:
    """Index records by country code; the first occurrence of a code wins."""
    dupes = _duplicates([r.country for r in records])
    if dupes:
        log.warning("merge.duplicate_emissions_codes", codes=dupes)

    index: Dict[str, EmissionsRecord] = {}
    for record in records:
        index.setdefault(record.country, record)
    return index


def find_missing_countries(boundaries: dict, records: List[EmissionsRecord]) -> List[str]:
    """Emissions codes with no boundary feature. Reported, never fatal."""
    feature_ids = {feature["id"] for feature in boundaries["features"]}
    missing = [r.country for r in records if r.country not in feature_ids]
    if missing:
        log.warning(
            "merge.countries_missing_geojson",
            n_missing=len(missing),
            codes=missing,
        )
    return missing


def merge_emissions_with_countries(boundaries: dict, records: List[EmissionsRecord]) -> dict:
    """
    Attach each boundary feature's year -> emissions mapping as
    `properties.emissions`.

    Features without an emissions record are dropped (one warning each). The
    input collection is left untouched; feature order follows the boundaries.
    """
    dupes = _duplicates([f["id"] for f in boundaries["features"]])
    if dupes:
        log.warning("merge.duplicate_feature_ids", ids=dupes)

    index = index_by_code(records)
    seen = set()
    features = []
    for feature in boundaries["features"]:
        if feature["id"] in seen:
            continue
        seen.add(feature["id"])

        record = index.get(feature["id"])
        if record is None:
            log.warning("merge.emissions_not_found", country=feature["id"])
            continue

        features.append({
            **feature,
            "properties": {
                **(feature.get("properties") or {}),
                "emissions": {str(year): value for year, value in record.years.items()},
            },
        })

    return {"type": "FeatureCollection", "features": features}


def write_feature_collection(collection: dict, output_path: Path) -> None:
    """Serialize the collection; written to a temp file first so no partial output is left."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    text = json.dumps(collection, indent=2) + "\n"

    tmp_path = output_path.with_name(output_path.name + ".tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, output_path)
    finally:
        tmp_path.unlink(missing_ok=True)


def coverage_summary(collection: dict) -> pd.DataFrame:
    """
    Per-year data coverage of the combined collection.

    Returns year, countries_with_data, countries_missing and pct_missing,
    ordered by year.
    """
    rows = [
        (int(year), value)
        for feature in collection["features"]
        for year, value in feature["properties"]["emissions"].items()
    ]
    df = pd.DataFrame(rows, columns=["year", "value"])
    if df.empty:
        return pd.DataFrame(columns=["year", "countries_with_data", "countries_missing", "pct_missing"])

    df["has_data"] = df["value"].apply(lambda v: v != "" and v is not None)
    summary = df.groupby("year")["has_data"].agg(["sum", "count"]).reset_index()
    summary = summary.rename(columns={"sum": "countries_with_data"})
    summary["countries_with_data"] = summary["countries_with_data"].astype(int)
    summary["countries_missing"] = summary["count"] - summary["countries_with_data"]
    summary["pct_missing"] = (100.0 * summary["countries_missing"] / summary["count"]).round(2)

    return summary[["year", "countries_with_data", "countries_missing", "pct_missing"]].sort_values("year").reset_index(drop=True)
