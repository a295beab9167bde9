"""Input and output models for analytics calculations."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal


# =============================================================================
# ATTRIBUTION
# =============================================================================


@dataclass(frozen=True)
class Touchpoint:
    """Single marketing touch preceding a conversion."""

    campaign_id: str
    platform: str
    occurred_at: datetime | str | None = None


@dataclass(frozen=True)
class Conversion:
    """Conversion with its ordered touchpoint sequence (first -> last)."""

    value: float
    touchpoints: tuple[Touchpoint, ...]
    converted_at: datetime | str | None = None
    conversion_id: str | None = None


@dataclass(frozen=True)
class AttributionTotals:
    """Credit per (platform, campaign) under every attribution model."""

    platform: str
    campaign_id: str
    first_touch: float
    last_touch: float
    linear: float
    position_based: float
    time_decay: float


# =============================================================================
# FORECAST
# =============================================================================


@dataclass(frozen=True)
class ForecastPoint:
    """Historical point (actual only) or projected point (forecast + band)."""

    date: str
    actual: float | None = None
    forecast: float | None = None
    lower: float | None = None
    upper: float | None = None


# =============================================================================
# FUNNEL
# =============================================================================


@dataclass(frozen=True)
class FunnelStage:
    """Named funnel stage with the count of entities reaching it."""

    name: str
    value: float


@dataclass(frozen=True)
class ProcessedFunnelStage:
    """Funnel stage with conversion and drop-off figures (percentages 0-100)."""

    name: str
    value: float
    step_conversion_rate: float | None  # None for the first stage
    cumulative_conversion_rate: float  # value / first value
    drop_off_count: float  # lost from previous stage, never negative
    drop_off_percent: float


@dataclass(frozen=True)
class FunnelAnalysis:
    """Complete funnel analysis output."""

    stages: list[ProcessedFunnelStage]
    overall_conversion_rate: float  # last / first * 100
    stage_conversion_rates: list[float]  # one per consecutive pair
    total_drop_off: float  # first - last
    biggest_drop_off_stage: ProcessedFunnelStage | None
    is_sequential: bool  # values non-increasing


@dataclass(frozen=True)
class RankedStage:
    """Stage shown as a ranked bar when data is not a true funnel."""

    name: str
    value: float
    share: float  # % of the sum of all stage values


# =============================================================================
# CHANNELS & VALUE
# =============================================================================


@dataclass(frozen=True)
class ChannelInput:
    """Conversions and spend for one marketing channel."""

    name: str
    conversions: float
    spend: float


@dataclass(frozen=True)
class ChannelResult:
    """Channel share of conversions and conversions per unit spend."""

    name: str
    contribution: float  # % of total conversions
    efficiency: float  # conversions / spend


@dataclass(frozen=True)
class MetricTrend:
    """Current vs previous period comparison."""

    current: float
    previous: float
    change: float
    change_percent: float  # 0 when previous is 0


@dataclass(frozen=True)
class KeyMetrics:
    """Headline value metrics for the dashboard."""

    revenue: MetricTrend
    cac: float
    ltv: float
    ltv_cac_ratio: float
    confidence: Literal["high", "medium", "low"]
    sample_size: int
    period_days: int


# =============================================================================
# SERIES STATISTICS
# =============================================================================


@dataclass(frozen=True)
class TrendlineResult:
    """Linear regression over an ordered series."""

    slope: float
    intercept: float
    r_squared: float
    direction: Literal["up", "down", "flat"]
    strength: Literal["strong", "moderate", "weak"]
    predicted_values: list[float]


@dataclass(frozen=True)
class AnomalyResult:
    """Z-score anomaly check for a single point."""

    index: int
    value: float
    z_score: float
    is_anomaly: bool
    direction: Literal["high", "low", "normal"]
    date: str | None = None
