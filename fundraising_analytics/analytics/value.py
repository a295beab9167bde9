"""Customer value metrics: CAC, LTV and period-over-period trends."""

from .models import MetricTrend


def calculate_cac(total_spend: float, total_customers: float) -> float:
    """Customer acquisition cost: spend / customers (0 without customers)."""
    return total_spend / total_customers if total_customers > 0 else 0.0


def calculate_ltv(
    avg_value: float, frequency_per_period: float, retention_periods: float
) -> float:
    """Lifetime value: average value x frequency per period x retention periods."""
    return avg_value * frequency_per_period * retention_periods


def calculate_ltv_cac_ratio(ltv: float, cac: float) -> float:
    """LTV / CAC, 0 when CAC is 0."""
    return ltv / cac if cac > 0 else 0.0


def calculate_trend(current: float, previous: float) -> MetricTrend:
    """Compare current vs previous period.

    A previous value of 0 reports a 0% change, even when current > 0.
    """
    change = current - previous
    return MetricTrend(
        current=current,
        previous=previous,
        change=change,
        change_percent=change / previous * 100 if previous != 0 else 0.0,
    )
