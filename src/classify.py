from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from src.features import CountryFeature

NO_DATA_BUCKET = -1
NO_DATA_LABEL = "No data."


@dataclass(frozen=True)
class ClassifiedFeature:
    feature: CountryFeature
    year: int
    value: Optional[float]
    bucket: int
    rank: Optional[int]
    n_buckets: int

    @property
    def percentile(self) -> Optional[int]:
        return percentile_for(self.bucket, self.n_buckets)


def present_values(features: Sequence[CountryFeature], year: int) -> List[float]:
    """Values for `year` in input order, no-data entries left out."""
    return [f.value_for(year) for f in features if f.value_for(year) is not None]


def quantile_thresholds(values: Sequence[float], n_buckets: int) -> List[float]:
    """
    The n_buckets - 1 cut points splitting `values` into equally populated buckets.

    Uses linear interpolation between order statistics (R-7), the usual
    quantile scale definition. An empty domain has no thresholds.
    """
    if n_buckets < 1:
        raise ValueError(f"n_buckets must be positive, got {n_buckets}")
    if len(values) == 0 or n_buckets == 1:
        return []
    domain = np.sort(np.asarray(values, dtype=float))
    qs = [i / n_buckets for i in range(1, n_buckets)]
    return np.quantile(domain, qs).tolist()


def bucket_for(value: Optional[float], thresholds: Sequence[float]) -> int:
    if value is None:
        return NO_DATA_BUCKET
    return int(np.searchsorted(thresholds, value, side="right"))


def rank_values(values: Sequence[float]) -> List[int]:
    """
    1 = largest. Each value takes the position of its first match in the
    descending order, so ties share the best rank and the next rank is skipped:
    [50, 30, 30, 10] -> [1, 2, 2, 4].
    """
    if len(values) == 0:
        return []
    ranks = pd.Series(values, dtype=float).rank(method="min", ascending=False)
    return ranks.astype(int).tolist()


def classify_year(features: Sequence[CountryFeature], year: int, n_buckets: int) -> List[ClassifiedFeature]:
    """
    Bucket and rank every feature for `year`.

    Features without data get NO_DATA_BUCKET and no rank, and take no part in
    the quantile domain or the ordering. Returns new objects; the features
    are not modified.
    """
    values = present_values(features, year)
    thresholds = quantile_thresholds(values, n_buckets)
    rank_by_value = {}
    for value, rank in zip(values, rank_values(values)):
        rank_by_value.setdefault(value, rank)

    classified = []
    for feature in features:
        value = feature.value_for(year)
        classified.append(ClassifiedFeature(
            feature=feature,
            year=year,
            value=value,
            bucket=bucket_for(value, thresholds),
            rank=rank_by_value.get(value) if value is not None else None,
            n_buckets=n_buckets,
        ))
    return classified


def percentile_for(bucket: int, n_buckets: int) -> Optional[int]:
    if bucket == NO_DATA_BUCKET:
        return None
    if n_buckets <= 1:
        return 100
    return int(bucket / (n_buckets - 1) * 100)


def int_ordinal(n: int) -> str:
    """English ordinal suffix: 1 -> "st", 12 -> "th", 23 -> "rd"."""
    if 11 <= n % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def rank_label(rank: Optional[int]) -> str:
    if not rank:
        return NO_DATA_LABEL
    return f"{rank}{int_ordinal(rank)}"


def ranking_table(classified: Sequence[ClassifiedFeature]) -> pd.DataFrame:
    """Countries with data for the year, best rank first."""
    rows = [
        {
            "rank": c.rank,
            "id": c.feature.id,
            "name": c.feature.name,
            "emissions": c.value,
            "percentile": c.percentile,
        }
        for c in classified
        if c.rank is not None
    ]
    df = pd.DataFrame(rows, columns=["rank", "id", "name", "emissions", "percentile"])
    return df.sort_values("rank", kind="stable").reset_index(drop=True)
