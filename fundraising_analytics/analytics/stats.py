"""Series statistics: trendlines, z-score anomalies and rolling helpers."""

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np
from scipy import stats

from ..ingestion.cleaner import to_number
from .models import AnomalyResult, TrendlineResult

FLAT_SLOPE = 0.001
STRONG_R_SQUARED = 0.7
MODERATE_R_SQUARED = 0.4


def calculate_trendline(values: list[float] | np.ndarray) -> TrendlineResult:
    """Fit a linear trend and classify its direction and strength.

    Args:
        values: Ordered metric values (e.g., daily revenue)

    Returns:
        TrendlineResult. Direction is "flat" when |slope| < 0.001; strength
        is "strong" above R² 0.7, "moderate" above 0.4, else "weak".
    """
    arr = np.array([to_number(v) for v in values], dtype=float)
    n = len(arr)

    if n < 2:
        return TrendlineResult(
            slope=0.0,
            intercept=float(arr[0]) if n else 0.0,
            r_squared=0.0,
            direction="flat",
            strength="weak",
            predicted_values=arr.tolist(),
        )

    x = np.arange(n)
    slope, intercept, r_value, _, _ = stats.linregress(x, arr)
    r_squared = float(r_value**2)

    if abs(slope) < FLAT_SLOPE:
        direction = "flat"
    else:
        direction = "up" if slope > 0 else "down"

    if r_squared > STRONG_R_SQUARED:
        strength = "strong"
    elif r_squared > MODERATE_R_SQUARED:
        strength = "moderate"
    else:
        strength = "weak"

    return TrendlineResult(
        slope=float(slope),
        intercept=float(intercept),
        r_squared=r_squared,
        direction=direction,
        strength=strength,
        predicted_values=(slope * x + intercept).tolist(),
    )


def calculate_z_scores(values: list[float] | np.ndarray) -> np.ndarray:
    """Calculate z-scores for a list of values.

    Args:
        values: Metric values

    Returns:
        Array of z-scores (0 if std is 0). Uses the population std.
    """
    arr = np.array(values, dtype=float)
    if len(arr) == 0:
        return arr

    mean = np.mean(arr)
    std = np.std(arr)

    if std == 0:
        return np.zeros_like(arr)

    return (arr - mean) / std


def detect_anomalies_with_context(
    series: Sequence[Mapping[str, Any]],
    threshold: float = 2.0,
) -> list[AnomalyResult]:
    """Flag points more than ``threshold`` standard deviations from the mean.

    Args:
        series: Ordered points with "date" and "value"
        threshold: Z-score threshold

    Returns:
        One AnomalyResult per point. Series shorter than 3 points are
        reported as all normal.
    """
    values = [to_number(point.get("value")) for point in series]
    dates = [point.get("date") for point in series]

    if len(values) < 3:
        z_scores = np.zeros(len(values))
    else:
        z_scores = calculate_z_scores(values)

    results: list[AnomalyResult] = []
    for i, (value, z) in enumerate(zip(values, z_scores)):
        z = float(z)
        if z > threshold:
            direction = "high"
        elif z < -threshold:
            direction = "low"
        else:
            direction = "normal"
        results.append(
            AnomalyResult(
                index=i,
                value=value,
                z_score=z,
                is_anomaly=abs(z) > threshold,
                direction=direction,
                date=dates[i],
            )
        )

    return results


def detect_anomalies(values: list[float] | np.ndarray, threshold: float = 2.0) -> list[bool]:
    """True where a value is more than ``threshold`` std from the mean."""
    return [bool(abs(z) > threshold) for z in calculate_z_scores(values)]


def moving_average(values: list[float] | np.ndarray, window_size: int) -> list[float]:
    """Trailing mean over up to ``window_size`` values (shorter at the start)."""
    if window_size < 1:
        raise ValueError("window_size must be >= 1")

    arr = np.array(values, dtype=float)
    cumulative = np.concatenate([[0.0], np.cumsum(arr)])
    result: list[float] = []
    for i in range(len(arr)):
        start = max(0, i - window_size + 1)
        result.append(float((cumulative[i + 1] - cumulative[start]) / (i + 1 - start)))
    return result


def rolling_average(
    rows: Sequence[Mapping[str, Any]], field: str, window: int
) -> list[dict[str, Any]]:
    """Copy rows adding ``rolling_avg``: trailing mean of ``field``."""
    averages = moving_average([to_number(r.get(field)) for r in rows], window)
    return [{**row, "rolling_avg": avg} for row, avg in zip(rows, averages)]


def cumulative_sum(rows: Sequence[Mapping[str, Any]], field: str) -> list[dict[str, Any]]:
    """Copy rows adding ``cumulative``: running total of ``field``."""
    totals = np.cumsum([to_number(r.get(field)) for r in rows])
    return [{**row, "cumulative": float(total)} for row, total in zip(rows, totals)]


def percent_change(rows: Sequence[Mapping[str, Any]], field: str) -> list[dict[str, Any]]:
    """Copy rows adding ``percent_change`` of ``field`` vs the previous row.

    The first row and rows following a 0 report 0.
    """
    result: list[dict[str, Any]] = []
    previous: float | None = None
    for row in rows:
        current = to_number(row.get(field))
        change = (current - previous) / previous * 100 if previous else 0.0
        result.append({**row, "percent_change": change})
        previous = current
    return result
