"""Analytics module: pure computations behind the fundraising dashboard."""

from .attribution import (
    AttributionModel,
    aggregate_attribution_rows,
    allocate_credit,
    attribute_conversions,
    model_weights,
    total_credit,
)
from .channels import calculate_channel_contribution
from .forecast import forecast_trend
from .funnel import analyze_funnel, get_drop_off_severity, rank_stages
from .insights import Insight, InsightEngine, InsightThresholds, Severity
from .models import (
    AnomalyResult,
    AttributionTotals,
    ChannelInput,
    ChannelResult,
    Conversion,
    ForecastPoint,
    FunnelAnalysis,
    FunnelStage,
    KeyMetrics,
    MetricTrend,
    ProcessedFunnelStage,
    RankedStage,
    Touchpoint,
    TrendlineResult,
)
from .periods import group_by_period, sort_periods
from .stats import (
    calculate_trendline,
    calculate_z_scores,
    cumulative_sum,
    detect_anomalies,
    detect_anomalies_with_context,
    moving_average,
    percent_change,
    rolling_average,
)
from .value import calculate_cac, calculate_ltv, calculate_ltv_cac_ratio, calculate_trend

__all__ = [
    "AnomalyResult",
    "AttributionModel",
    "AttributionTotals",
    "ChannelInput",
    "ChannelResult",
    "Conversion",
    "ForecastPoint",
    "FunnelAnalysis",
    "FunnelStage",
    "Insight",
    "InsightEngine",
    "InsightThresholds",
    "KeyMetrics",
    "MetricTrend",
    "ProcessedFunnelStage",
    "RankedStage",
    "Severity",
    "Touchpoint",
    "TrendlineResult",
    "aggregate_attribution_rows",
    "allocate_credit",
    "analyze_funnel",
    "attribute_conversions",
    "calculate_cac",
    "calculate_channel_contribution",
    "calculate_ltv",
    "calculate_ltv_cac_ratio",
    "calculate_trend",
    "calculate_trendline",
    "calculate_z_scores",
    "cumulative_sum",
    "detect_anomalies",
    "detect_anomalies_with_context",
    "forecast_trend",
    "get_drop_off_severity",
    "group_by_period",
    "model_weights",
    "moving_average",
    "percent_change",
    "rank_stages",
    "rolling_average",
    "sort_periods",
    "total_credit",
]
