"""Time bucketing: group timestamped records into day/week/month periods."""

import logging
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Literal

import polars as pl

from ..exceptions import InvalidInputError
from ..ingestion.cleaner import date_text
from ..ingestion.validator import ensure_records
from ..settings import GRANULARITIES
from .expressions import parsed_date_expr, period_key_expr

logger = logging.getLogger(__name__)

Granularity = Literal["day", "week", "month"]
Aggregator = Callable[[tuple[Mapping[str, Any], ...]], Mapping[str, Any]]


def assign_periods(
    records: Sequence[Mapping[str, Any]],
    date_field: str,
    granularity: Granularity,
    week_start: str = "monday",
) -> list[tuple[str, list[int]]]:
    """Map each record index to its period key.

    Returns:
        (period, record indices) pairs in first-appearance order. Records
        with a missing, empty or unparseable date are left out.
    """
    df = pl.DataFrame(
        {
            "row": list(range(len(records))),
            "raw_date": [date_text(r.get(date_field)) for r in records],
        },
        schema={"row": pl.Int64, "raw_date": pl.Utf8},
    )

    keyed = (
        df.with_columns(parsed_date_expr("raw_date").alias("parsed"))
        .filter(pl.col("parsed").is_not_null())
        .with_columns(period_key_expr("parsed", granularity, week_start))
    )

    dropped = len(df) - len(keyed)
    if dropped:
        logger.debug("Dropped %d records without a valid %r", dropped, date_field)

    grouped = keyed.group_by("period", maintain_order=True).agg(pl.col("row"))
    return [(row["period"], row["row"]) for row in grouped.to_dicts()]


def group_by_period(
    records: Sequence[Mapping[str, Any]],
    date_field: str,
    granularity: Granularity,
    aggregator: Aggregator,
    week_start: str = "monday",
) -> list[dict[str, Any]]:
    """Bucket records by period and reduce each bucket with ``aggregator``.

    The aggregator is called exactly once per non-empty bucket with a tuple
    of read-only views of that bucket's records, and its result is merged
    after the ``period`` key. Output follows first appearance of each
    period; sort by ``period`` for chronological order (see ``sort_periods``).

    Args:
        records: Records with a date field (YYYY-MM-DD or ISO timestamp)
        date_field: Name of the date field
        granularity: "day", "week" or "month"
        aggregator: Reduction from bucket records to a mapping of metrics
        week_start: First day of week for weekly buckets (default Monday)

    Returns:
        One dict per period: {"period": "YYYY-MM-DD", **aggregated}
    """
    ensure_records(records)
    if not callable(aggregator):
        raise InvalidInputError("aggregator must be callable")
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity!r}")
    if not records:
        return []

    results: list[dict[str, Any]] = []
    for period, rows in assign_periods(records, date_field, granularity, week_start):
        bucket = tuple(MappingProxyType(records[i]) for i in rows)
        aggregated = aggregator(bucket)
        if not isinstance(aggregated, Mapping):
            raise InvalidInputError(
                f"aggregator must return a mapping, got {type(aggregated).__name__}"
            )
        results.append(
            {"period": period, **{k: v for k, v in aggregated.items() if k != "period"}}
        )

    return results


def sort_periods(rows: Sequence[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Sort aggregated periods chronologically (string sort on ``period``)."""
    return sorted((dict(r) for r in rows), key=lambda r: r["period"])
