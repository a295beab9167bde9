"""CSV export of tabular results."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import polars as pl

from ..ingestion.validator import ensure_records

logger = logging.getLogger(__name__)


def _cell(value: Any) -> str | None:
    return None if value is None else str(value)


def to_csv_text(rows: Sequence[Mapping[str, Any]]) -> str:
    """Serialize rows to CSV using the first row's keys as the header.

    Values containing commas, quotes or newlines are quoted. Keys missing
    from a later row become empty cells; keys absent from the first row
    are not exported. Empty input gives "".
    """
    ensure_records(rows, "rows")
    if not rows:
        return ""

    headers = list(rows[0].keys())
    df = pl.DataFrame(
        {h: [_cell(row.get(h)) for row in rows] for h in headers},
        schema={h: pl.Utf8 for h in headers},
    )
    return df.write_csv()


def export_to_csv(
    rows: Sequence[Mapping[str, Any]], filename: str | Path = "export.csv"
) -> Path | None:
    """Write rows to a CSV file.

    Returns:
        Path written, or None when there are no rows (nothing is written).
    """
    text = to_csv_text(rows)
    if not text:
        return None

    path = Path(filename)
    path.write_text(text, encoding="utf-8")
    logger.info("Exported %d rows to %s", len(rows), path)
    return path
