import json
from pathlib import Path
from typing import List

import duckdb

from src.exceptions import MalformedInputError


def read_boundaries(geojson_path: Path) -> dict:
    """
    Load the country-boundary FeatureCollection.

    Every feature must carry an `id`; it is the join key for the emissions table.
    """
    if not geojson_path.exists():
        raise FileNotFoundError(f"GeoJSON not found: {geojson_path.resolve()}")

    try:
        collection = json.loads(geojson_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedInputError(f"Error parsing JSON in {geojson_path.name}: {exc}") from exc

    if not isinstance(collection, dict) or collection.get("type") != "FeatureCollection":
        raise MalformedInputError(f"{geojson_path.name} is not a GeoJSON FeatureCollection.")

    features = collection.get("features")
    if not isinstance(features, list):
        raise MalformedInputError(f"{geojson_path.name} has no features array.")

    for position, feature in enumerate(features):
        if not isinstance(feature, dict) or feature.get("id") in (None, ""):
            raise MalformedInputError(
                f"{geojson_path.name}: feature #{position} has no id to join on."
            )

    return collection


def read_emissions_table(csv_path: Path, skip_rows: int = 0) -> List[List[str]]:
    """
    Read the emissions CSV as raw text rows, in file order.

    Empty cells come back as "" so the year mapping can keep them as "no data".
    """
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path.resolve()}")

    con = duckdb.connect()
    try:
        # - header=false: the first row is data (or preamble, see skip_rows)
        # - all_varchar=true: numeric parsing happens per cell in the merge step
        # - null_padding=true: short rows are padded instead of rejected
        rows = con.execute(f"""
            SELECT *
            FROM read_csv(
                ?,
                header=false,
                delim=',',
                quote='"',
                escape='"',
                skip={int(skip_rows)},
                sample_size=-1,
                all_varchar=true,
                null_padding=true
            )
        """, [str(csv_path)]).fetchall()
    except duckdb.Error as exc:
        raise MalformedInputError(f"Error parsing CSV {csv_path.name}: {exc}") from exc
    finally:
        con.close()

    return [["" if cell is None else cell for cell in row] for row in rows]
