from pathlib import Path
from typing import Optional

import click

from src.config import Paths, Settings
from src.exceptions import MalformedInputError
from src.ingest import read_boundaries, read_emissions_table
from src.merge import (
    coverage_summary,
    find_missing_countries,
    merge_emissions_with_countries,
    parse_emissions_rows,
    write_feature_collection,
)


def build_combined(
    countries_path: Path,
    emissions_path: Path,
    output_path: Path,
    base_year: int,
    skip_rows: int = 0,
    coverage_path: Optional[Path] = None,
) -> dict:
    # Ingest: both inputs are parsed in full before anything is written
    boundaries = read_boundaries(countries_path)
    rows = read_emissions_table(emissions_path, skip_rows=skip_rows)
    records = parse_emissions_rows(rows, base_year)
    click.echo(f"Loaded {len(boundaries['features'])} boundaries, {len(records)} emissions rows")

    find_missing_countries(boundaries, records)
    combined = merge_emissions_with_countries(boundaries, records)

    write_feature_collection(combined, output_path)
    click.echo(f"Saved: {output_path} ({len(combined['features'])} countries)")

    if coverage_path is not None:
        coverage_path.parent.mkdir(parents=True, exist_ok=True)
        coverage_summary(combined).to_csv(coverage_path, index=False)
        click.echo(f"Saved: {coverage_path}")

    return combined


@click.command()
@click.option("--countries", "countries_path", type=click.Path(path_type=Path), default=Paths().countries, show_default=True,
              help="Country boundaries (GeoJSON FeatureCollection).")
@click.option("--emissions", "emissions_path", type=click.Path(path_type=Path), default=Paths().emissions, show_default=True,
              help="Emissions CSV: name, code, two ignored columns, then one column per year.")
@click.option("--output", "output_path", type=click.Path(path_type=Path), default=Paths().combined, show_default=True)
@click.option("--base-year", type=int, default=Settings().base_year, show_default=True,
              help="Year of the first year column.")
@click.option("--skip-rows", type=int, default=0, show_default=True,
              help="Preamble lines to skip at the top of the CSV.")
@click.option("--coverage/--no-coverage", default=True, show_default=True,
              help="Also write the per-year coverage report.")
def main(countries_path, emissions_path, output_path, base_year, skip_rows, coverage) -> None:
    """Merge yearly methane emissions into country boundaries."""
    # Coverage report lands next to the combined file
    coverage_path = output_path.parent / Paths().coverage.name if coverage else None

    try:
        build_combined(countries_path, emissions_path, output_path, base_year, skip_rows, coverage_path)
    except (FileNotFoundError, MalformedInputError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo("Done ✅")


if __name__ == "__main__":
    main()
