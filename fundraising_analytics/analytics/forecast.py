"""Linear trend forecast with a symmetric confidence band."""

import logging
import math
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from typing import Any

import numpy as np
from scipy import stats

from ..ingestion.cleaner import date_text, to_number
from ..ingestion.validator import ensure_records
from .models import ForecastPoint

logger = logging.getLogger(__name__)


def forecast_trend(
    history: Sequence[Mapping[str, Any]],
    horizon: int = 7,
    confidence_level: float = 0.95,
) -> list[ForecastPoint]:
    """Extend a series by ``horizon`` periods along its OLS trend line.

    The line is fit on (index, value). The band is
    ``forecast ± z * se`` with ``se = sqrt(sum(residuals**2) / n)`` and
    ``z = norm.ppf(0.5 + confidence_level / 2)`` (1.96 at 95%).

    Args:
        history: Ordered points, each with "date" and "value"
        horizon: Number of future periods
        confidence_level: Coverage of the band

    Returns:
        len(history) points with ``actual`` followed by ``horizon`` points
        with ``forecast``/``lower``/``upper``. A single point projects flat
        with a zero-width band; an empty history gives [].

    Historical dates are returned as given. Future dates step on from the
    last parseable date; when no history date parses at all, only the
    historical points are returned.
    """
    ensure_records(history, "history")
    if horizon < 0:
        raise ValueError("horizon must be >= 0")
    if not 0 < confidence_level < 1:
        raise ValueError("confidence_level must be between 0 and 1")

    n = len(history)
    if n == 0:
        return []

    labels = [_label(point.get("date")) for point in history]
    dates = [date_text(point.get("date")) for point in history]
    values = np.array([to_number(point.get("value")) for point in history])

    points = [
        ForecastPoint(date=d, actual=float(v)) for d, v in zip(labels, values)
    ]

    future_dates = _future_dates(dates, horizon)
    if future_dates is None:
        logger.warning("No parseable date in history; no forecast")
        return points

    slope, intercept, std_error = _fit(values)
    z = float(stats.norm.ppf(0.5 + confidence_level / 2))
    margin = z * std_error

    for i, future_date in enumerate(future_dates, start=1):
        x = n - 1 + i
        value = slope * x + intercept
        points.append(
            ForecastPoint(
                date=future_date,
                forecast=value,
                lower=value - margin,
                upper=value + margin,
            )
        )

    return points


def _fit(values: np.ndarray) -> tuple[float, float, float]:
    """(slope, intercept, residual standard error) of an OLS fit on index."""
    n = len(values)
    if n < 2:
        return 0.0, float(values[0]), 0.0

    x = np.arange(n)
    result = stats.linregress(x, values)
    residuals = values - (result.slope * x + result.intercept)
    std_error = math.sqrt(float(np.sum(residuals**2)) / n)
    return float(result.slope), float(result.intercept), std_error


def _future_dates(dates: list[str], horizon: int) -> list[str] | None:
    """Continue the spacing of the last two parseable dates ``horizon`` times.

    Month steps are kept when both dates are first-of-month one month apart
    per position; otherwise the day difference per position is used (1 day
    if not positive). Unparseable trailing dates still count as positions.
    None when no date parses.
    """
    parsed = [(i, d) for i, d in enumerate(map(_parse, dates)) if d is not None]
    if not parsed:
        return None

    last_index, last = parsed[-1]
    offset = len(dates) - 1 - last_index
    positions = range(offset + 1, offset + horizon + 1)

    if len(parsed) < 2:
        return [(last + timedelta(days=p)).isoformat() for p in positions]

    previous_index, previous = parsed[-2]
    gap = last_index - previous_index

    if (
        last.day == 1
        and previous.day == 1
        and _month_index(last) - _month_index(previous) == gap
    ):
        return [_add_months(last, p).isoformat() for p in positions]

    step = (last - previous).days // gap
    if step <= 0:
        step = 1
    return [(last + timedelta(days=step * p)).isoformat() for p in positions]


def _label(value: Any) -> str:
    if isinstance(value, str):
        return value
    return date_text(value)


def _parse(text: str) -> date | None:
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _month_index(d: date) -> int:
    return d.year * 12 + d.month - 1


def _add_months(d: date, months: int) -> date:
    index = _month_index(d) + months
    return date(index // 12, index % 12 + 1, 1)
