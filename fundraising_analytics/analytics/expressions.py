"""Reusable Polars expressions for analytics calculations."""

import polars as pl

from ..settings import GRANULARITIES, WEEK_START_DAYS

# Attribution model columns, in display order
ATTRIBUTION_COLUMNS = [
    "first_touch",
    "last_touch",
    "linear",
    "position_based",
    "time_decay",
]


# =============================================================================
# PERIOD BUCKETING
# =============================================================================


def parsed_date_expr(col_name: str) -> pl.Expr:
    """Parse the leading ``YYYY-MM-DD`` of a string column to Date.

    Full ISO timestamps are truncated to their date part. Empty or
    unparseable values become null.
    """
    return (
        pl.col(col_name)
        .cast(pl.Utf8)
        .str.strip_chars()
        .str.slice(0, 10)
        .str.to_date("%Y-%m-%d", strict=False)
    )


def period_start_expr(
    date_col: str, granularity: str, week_start: str = "monday"
) -> pl.Expr:
    """Truncate a Date column to the start of its period.

    day: the date itself; week: the most recent ``week_start`` day;
    month: first of month.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity!r}")
    if week_start not in WEEK_START_DAYS:
        raise ValueError(f"Unknown week_start: {week_start!r}")

    col = pl.col(date_col)

    if granularity == "day":
        return col
    if granularity == "month":
        return col.dt.truncate("1mo")

    # "1w" truncates to Monday; shift so the configured day lands on Monday
    offset = WEEK_START_DAYS.index(week_start)
    if offset == 0:
        return col.dt.truncate("1w")
    return (
        col.dt.offset_by(f"-{offset}d").dt.truncate("1w").dt.offset_by(f"{offset}d")
    )


def period_key_expr(
    date_col: str, granularity: str, week_start: str = "monday"
) -> pl.Expr:
    """Sortable ``YYYY-MM-DD`` bucket key for a Date column."""
    return (
        period_start_expr(date_col, granularity, week_start)
        .cast(pl.Date)
        .dt.strftime("%Y-%m-%d")
        .alias("period")
    )


# =============================================================================
# ATTRIBUTION
# =============================================================================


def attribution_totals_expr() -> list[pl.Expr]:
    """Independent sum of every attribution model column."""
    return [pl.col(col).sum().alias(col) for col in ATTRIBUTION_COLUMNS]
