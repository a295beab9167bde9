"""Multi-touch attribution: split conversion value across touchpoints.

Five models are computed side by side:

- first_touch: 100% to the first touchpoint
- last_touch: 100% to the last touchpoint
- linear: equal share for every touchpoint
- position_based: 40% first, 40% last, 20% shared by the interior touchpoints.
  A single touchpoint gets 100%; with two touchpoints the 40/40 split is
  renormalised to 50/50.
- time_decay: weight halves every ``half_life_days`` (default 7) before the
  conversion. Without timestamps on every touchpoint, each step back in the
  sequence counts as one day.

Per-touchpoint credits are summed per (platform, campaign). For every model
the grand total equals the total value of the conversions fed in.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import numpy as np
import polars as pl

from ..exceptions import InvalidInputError
from ..ingestion.cleaner import to_datetime, to_number
from ..ingestion.validator import ensure_records
from .expressions import ATTRIBUTION_COLUMNS, attribution_totals_expr
from .models import AttributionTotals, Conversion

logger = logging.getLogger(__name__)

DEFAULT_HALF_LIFE_DAYS = 7.0
SECONDS_PER_DAY = 86400

# Column names of pre-split attribution rows
PRESPLIT_FIELDS = {
    "first_touch": "first_touch_attribution",
    "last_touch": "last_touch_attribution",
    "linear": "linear_attribution",
    "position_based": "position_based_attribution",
    "time_decay": "time_decay_attribution",
}

TOTALS_SCHEMA = {
    "platform": pl.Utf8,
    "campaign_id": pl.Utf8,
    **{col: pl.Float64 for col in ATTRIBUTION_COLUMNS},
}


class AttributionModel(str, Enum):
    """Credit allocation rules."""

    FIRST_TOUCH = "first_touch"
    LAST_TOUCH = "last_touch"
    LINEAR = "linear"
    POSITION_BASED = "position_based"
    TIME_DECAY = "time_decay"


def model_weights(
    n: int,
    model: AttributionModel | str,
    ages_days: Sequence[float] | None = None,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    first_weight: float = 0.4,
    last_weight: float = 0.4,
) -> np.ndarray:
    """Credit share per touchpoint (first -> last) under one model.

    Args:
        n: Number of touchpoints
        model: Attribution model
        ages_days: Days between each touchpoint and the conversion
            (time_decay only; ordinal distance when omitted)
        half_life_days: Time-decay half-life
        first_weight: Position-based share of the first touchpoint
        last_weight: Position-based share of the last touchpoint

    Returns:
        Array of n non-negative weights summing to 1 (empty when n is 0).

    Raises:
        ValueError: If a position weight is negative or the two sum above 1.
    """
    model = AttributionModel(model)
    if min(first_weight, last_weight) < 0 or first_weight + last_weight > 1:
        raise ValueError(
            "position weights must be non-negative and sum to at most 1, "
            f"got {first_weight} and {last_weight}"
        )
    if n <= 0:
        return np.zeros(0)

    weights = np.zeros(n)

    if model is AttributionModel.FIRST_TOUCH:
        weights[0] = 1.0
    elif model is AttributionModel.LAST_TOUCH:
        weights[-1] = 1.0
    elif model is AttributionModel.LINEAR:
        weights[:] = 1.0
    elif model is AttributionModel.POSITION_BASED:
        if n == 1:
            weights[0] = 1.0
        else:
            weights[0] = first_weight
            weights[-1] = last_weight
            if n > 2:
                weights[1:-1] = (1.0 - first_weight - last_weight) / (n - 2)
    else:
        if ages_days is None:
            ages = np.arange(n - 1, -1, -1, dtype=float)
        else:
            ages = np.clip(np.asarray(ages_days, dtype=float), 0, None)
        weights = np.power(2.0, -ages / half_life_days)

    total = weights.sum()
    if total <= 0:
        return np.full(n, 1.0 / n)
    return weights / total


def touch_ages(conversion: Conversion) -> list[float] | None:
    """Days from each touchpoint to the conversion.

    The conversion time defaults to the latest touchpoint. Returns None when
    any touchpoint has no usable timestamp.
    """
    times = [to_datetime(tp.occurred_at) for tp in conversion.touchpoints]
    if not times or any(t is None for t in times):
        return None

    end = to_datetime(conversion.converted_at) or max(times)
    return [(end - t).total_seconds() / SECONDS_PER_DAY for t in times]


def allocate_credit(
    conversion: Conversion,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    first_weight: float = 0.4,
    last_weight: float = 0.4,
) -> list[dict[str, Any]]:
    """Credit of one conversion per touchpoint under all five models.

    Returns:
        One dict per touchpoint: platform, campaign_id and a credit column
        per model. Empty when the conversion has no touchpoints.
    """
    touchpoints = list(conversion.touchpoints)
    n = len(touchpoints)
    if n == 0:
        return []

    value = to_number(conversion.value)
    ages = touch_ages(conversion)
    credits = {
        model.value: value
        * model_weights(
            n,
            model,
            ages_days=ages,
            half_life_days=half_life_days,
            first_weight=first_weight,
            last_weight=last_weight,
        )
        for model in AttributionModel
    }

    return [
        {
            "platform": _text(tp.platform),
            "campaign_id": _text(tp.campaign_id),
            **{col: float(credits[col][i]) for col in ATTRIBUTION_COLUMNS},
        }
        for i, tp in enumerate(touchpoints)
    ]


def attribute_conversions(
    conversions: Sequence[Conversion],
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    first_weight: float = 0.4,
    last_weight: float = 0.4,
) -> list[AttributionTotals]:
    """Allocate credit for raw touchpoint sequences and total it per campaign.

    Conversions without touchpoints cannot be credited and are skipped.
    """
    if not isinstance(conversions, (list, tuple)):
        raise InvalidInputError(
            f"conversions must be a list, got {type(conversions).__name__}"
        )

    rows: list[dict[str, Any]] = []
    skipped = 0
    for conversion in conversions:
        if not isinstance(conversion, Conversion):
            raise InvalidInputError(
                f"expected Conversion, got {type(conversion).__name__}"
            )
        credited = allocate_credit(
            conversion,
            half_life_days=half_life_days,
            first_weight=first_weight,
            last_weight=last_weight,
        )
        if not credited:
            skipped += 1
        rows.extend(credited)

    if skipped:
        logger.debug("Skipped %d conversions without touchpoints", skipped)

    return _group_totals(rows)


def aggregate_attribution_rows(
    rows: Sequence[Mapping[str, Any]],
) -> list[AttributionTotals]:
    """Total pre-split attribution rows per (platform, campaign).

    Missing or non-numeric model fields count as 0.
    """
    ensure_records(rows, "attribution rows")

    flat = [
        {
            "platform": _text(row.get("platform")),
            "campaign_id": _text(row.get("campaign_id")),
            **{col: to_number(row.get(field)) for col, field in PRESPLIT_FIELDS.items()},
        }
        for row in rows
    ]
    return _group_totals(flat)


def total_credit(
    totals: Sequence[AttributionTotals], model: AttributionModel | str
) -> float:
    """Grand total of one model's credit across all groups."""
    column = AttributionModel(model).value
    return math.fsum(getattr(t, column) for t in totals)


def _group_totals(rows: list[dict[str, Any]]) -> list[AttributionTotals]:
    """Sum every model column per (platform, campaign), in first-seen order."""
    if not rows:
        return []

    df = pl.from_dicts(rows, schema=TOTALS_SCHEMA)
    grouped = df.group_by(["platform", "campaign_id"], maintain_order=True).agg(
        attribution_totals_expr()
    )

    return [AttributionTotals(**row) for row in grouped.to_dicts()]


def _text(value: Any) -> str:
    return "" if value is None else str(value)
