"""Rule-based insight generation for a daily metric series."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..ingestion.cleaner import to_number
from .stats import calculate_trendline, detect_anomalies_with_context


class Severity(str, Enum):
    """Insight severity levels."""

    GREEN = "green"  # Good / On track
    AMBER = "amber"  # Warning / Needs attention
    RED = "red"  # Critical / Action required


@dataclass(frozen=True)
class Insight:
    """Single insight with description, severity, and recommendation."""

    rule_id: str
    description: str
    severity: Severity
    recommendation: str
    metrics: dict[str, Any] | None = None


@dataclass
class InsightThresholds:
    """Configurable thresholds for insight rules."""

    # Anomaly: |z| above this is flagged; above severe_z_score is red
    anomaly_z_score: float = 2.0
    severe_z_score: float = 3.0
    min_points_for_anomalies: int = 5
    max_anomaly_insights: int = 2

    # Trend: needs this many points; flat or weak trends are ignored
    min_points_for_trend: int = 7

    # Milestone: |change| vs previous period >= X%; drops beyond red_drop_pct are red
    milestone_change_pct: float = 20.0
    milestone_red_drop_pct: float = 50.0


class InsightEngine:
    """Rule-based generator for anomaly, trend and milestone insights.

    Usage:
        engine = InsightEngine(daily_series, metric_name="Net Revenue")
        insights = engine.generate_all_insights(previous_total=prev)
    """

    def __init__(
        self,
        series: Sequence[Mapping[str, Any]],
        metric_name: str = "Revenue",
        thresholds: InsightThresholds | None = None,
    ):
        self.series = [
            {"date": point.get("date"), "value": to_number(point.get("value"))}
            for point in series
        ]
        self.metric_name = metric_name
        self.thresholds = thresholds or InsightThresholds()

    def generate_all_insights(self, previous_total: float | None = None) -> list[Insight]:
        """Run all insight rules and return detected insights."""
        insights: list[Insight] = []

        insights.extend(self._check_anomalies())
        insights.extend(self._check_trend())
        if previous_total is not None:
            insights.extend(self._check_milestone(previous_total))

        return insights

    def _check_anomalies(self) -> list[Insight]:
        """Most extreme days beyond the z-score threshold."""
        if len(self.series) < self.thresholds.min_points_for_anomalies:
            return []

        anomalies = [
            a
            for a in detect_anomalies_with_context(
                self.series, self.thresholds.anomaly_z_score
            )
            if a.is_anomaly
        ]
        anomalies.sort(key=lambda a: abs(a.z_score), reverse=True)

        insights: list[Insight] = []
        for anomaly in anomalies[: self.thresholds.max_anomaly_insights]:
            is_high = anomaly.direction == "high"
            insights.append(
                Insight(
                    rule_id="anomaly",
                    description=(
                        f"{self.metric_name} on {anomaly.date} was {anomaly.value:,.2f}, "
                        f"{abs(anomaly.z_score):.1f} standard deviations "
                        f"{'above' if is_high else 'below'} average"
                    ),
                    severity=(
                        Severity.RED
                        if abs(anomaly.z_score) > self.thresholds.severe_z_score
                        else Severity.AMBER
                    ),
                    recommendation=(
                        "Investigate what drove this spike."
                        if is_high
                        else "Review for potential issues."
                    ),
                    metrics={
                        "date": anomaly.date,
                        "value": anomaly.value,
                        "z_score": round(anomaly.z_score, 2),
                    },
                )
            )

        return insights

    def _check_trend(self) -> list[Insight]:
        """Meaningful upward or downward trend over the series."""
        days = len(self.series)
        if days < self.thresholds.min_points_for_trend:
            return []

        trend = calculate_trendline([p["value"] for p in self.series])
        if trend.direction == "flat" or trend.strength == "weak":
            return []

        is_up = trend.direction == "up"
        if is_up:
            severity = Severity.GREEN
        elif trend.strength == "strong":
            severity = Severity.RED
        else:
            severity = Severity.AMBER

        return [
            Insight(
                rule_id="trend",
                description=(
                    f"Over the last {days} days, {self.metric_name} shows a "
                    f"{trend.strength} {trend.direction}ward trend "
                    f"(R² {trend.r_squared * 100:.0f}%)"
                ),
                severity=severity,
                recommendation=(
                    "Keep current campaign mix." if is_up else "Consider optimizing campaigns."
                ),
                metrics={
                    "slope": round(trend.slope, 4),
                    "r_squared": round(trend.r_squared, 4),
                    "days": days,
                },
            )
        ]

    def _check_milestone(self, previous_total: float) -> list[Insight]:
        """Large change of the period total vs the previous period."""
        if previous_total <= 0:
            return []

        current_total = sum(p["value"] for p in self.series)
        change = (current_total - previous_total) / previous_total * 100
        if abs(change) < self.thresholds.milestone_change_pct:
            return []

        is_up = change > 0
        if is_up:
            severity = Severity.GREEN
        elif abs(change) > self.thresholds.milestone_red_drop_pct:
            severity = Severity.RED
        else:
            severity = Severity.AMBER

        return [
            Insight(
                rule_id="milestone",
                description=(
                    f"{self.metric_name} {'increased' if is_up else 'decreased'} by "
                    f"{abs(change):.0f}% compared to the previous period "
                    f"({previous_total:,.2f} -> {current_total:,.2f})"
                ),
                severity=severity,
                recommendation="Keep monitoring." if is_up else "Review what changed.",
                metrics={
                    "current": current_total,
                    "previous": previous_total,
                    "change_pct": round(change, 1),
                },
            )
        ]
