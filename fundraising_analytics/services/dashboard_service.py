"""Dashboard service - composes ingestion and analytics into one result."""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from pathlib import Path
from typing import Any

from ..analytics import (
    AttributionTotals,
    ChannelInput,
    ChannelResult,
    ForecastPoint,
    FunnelAnalysis,
    FunnelStage,
    Insight,
    InsightEngine,
    InsightThresholds,
    KeyMetrics,
    aggregate_attribution_rows,
    analyze_funnel,
    calculate_cac,
    calculate_channel_contribution,
    calculate_ltv,
    calculate_ltv_cac_ratio,
    calculate_trend,
    forecast_trend,
    group_by_period,
    sort_periods,
)
from ..ingestion import (
    DATE_KEY,
    TYPE_KEY,
    DataIngestionPipeline,
    to_bool,
    to_datetime,
    to_number,
)
from ..settings import AnalyticsConfig
from .export import export_to_csv

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = 365


@dataclass
class DashboardOutput:
    """Consolidated output from dashboard computation."""

    periods: list[dict[str, Any]]
    forecast: list[ForecastPoint]
    funnel: FunnelAnalysis
    attribution: list[AttributionTotals]
    channels: list[ChannelResult]
    key_metrics: KeyMetrics
    insights: list[Insight] = field(default_factory=list)
    comparison: list[dict[str, Any]] = field(default_factory=list)


class DashboardService:
    """Service computing every dashboard panel from raw source records.

    Orchestrates:
    1. Normalization of ad, SMS and donation records
    2. Period series (spend, revenue, conversions, ROI)
    3. Revenue forecast, funnel, attribution and channel contribution
    4. Key value metrics and rule-based insights

    Usage:
        service = DashboardService()
        output = service.build_dashboard(
            ad_metrics=meta_rows,
            sms_metrics=sms_rows,
            transactions=donations,
            attribution_rows=roi_rows,  # optional
        )
    """

    def __init__(
        self,
        config: AnalyticsConfig | None = None,
        registry_path: Path | None = None,
    ):
        """Initialize service.

        Args:
            config: Analytics parameters. Defaults to AnalyticsConfig().
            registry_path: Path to source_registry.yaml. Defaults to bundled config.
        """
        self.config = config or AnalyticsConfig()
        self.pipeline = DataIngestionPipeline(registry_path)

    def build_dashboard(
        self,
        ad_metrics: Sequence[Mapping[str, Any]],
        sms_metrics: Sequence[Mapping[str, Any]],
        transactions: Sequence[Mapping[str, Any]],
        attribution_rows: Sequence[Mapping[str, Any]] = (),
        previous_transactions: Sequence[Mapping[str, Any]] | None = None,
        validate: bool = False,
        start_date: date | str | None = None,
        end_date: date | str | None = None,
    ) -> DashboardOutput:
        """Compute all dashboard panels.

        Args:
            ad_metrics: Daily paid social metrics
            sms_metrics: SMS sends
            transactions: Donations in the selected range
            attribution_rows: Pre-split attribution rows (optional)
            previous_transactions: Donations of the previous range, for the
                milestone insight (optional)
            validate: Whether to run pydantic validation (default False)
            start_date: First day of the selected range (optional)
            end_date: Last day of the selected range (optional). With
                start_date, enables the period-over-period comparison series

        Returns:
            DashboardOutput with every panel computed
        """
        meta = self.pipeline.normalize(ad_metrics, "meta", validate=validate)
        sms = self.pipeline.normalize(sms_metrics, "sms", validate=validate)
        donations = self.pipeline.normalize(
            transactions, "transactions", validate=validate
        )
        attribution_input = self.pipeline.normalize(
            list(attribution_rows), "attribution", validate=validate
        )

        records = meta + sms + donations
        periods = self.get_period_series(records)
        if self.config.granularity == "day":
            daily = periods
        else:
            daily = self.get_period_series(records, granularity="day")
        revenue_series = [{"date": p["period"], "value": p["revenue"]} for p in periods]

        forecast = forecast_trend(
            revenue_series,
            horizon=self.config.forecast_horizon,
            confidence_level=self.config.confidence_level,
        )
        funnel = analyze_funnel(self.get_funnel_stages(meta, sms, donations))
        attribution = aggregate_attribution_rows(attribution_input)
        channels = calculate_channel_contribution(self.get_channel_inputs(meta, sms))
        key_metrics = self.get_key_metrics(daily, donations)

        previous_total = None
        previous_periods: list[dict[str, Any]] = []
        if previous_transactions is not None:
            previous = self.pipeline.normalize(previous_transactions, "transactions")
            previous_total = self._total(previous, "transactions")
            previous_periods = self.get_period_series(previous)

        comparison: list[dict[str, Any]] = []
        if start_date is not None and end_date is not None:
            comparison = self.get_comparison_series(
                periods, start_date, end_date, previous_periods
            )

        insights = InsightEngine(
            revenue_series,
            metric_name="Revenue",
            thresholds=InsightThresholds(
                anomaly_z_score=self.config.anomaly_z_threshold,
                min_points_for_anomalies=self.config.min_points_for_anomalies,
                min_points_for_trend=self.config.min_points_for_trend,
                milestone_change_pct=self.config.milestone_change_pct,
            ),
        ).generate_all_insights(previous_total=previous_total)

        logger.info(
            "Built dashboard: %d periods, %d donations, %d attribution groups",
            len(periods),
            len(donations),
            len(attribution),
        )

        return DashboardOutput(
            periods=periods,
            forecast=forecast,
            funnel=funnel,
            attribution=attribution,
            channels=channels,
            key_metrics=key_metrics,
            insights=insights,
            comparison=comparison,
        )

    def get_period_series(
        self, records: list[dict[str, Any]], granularity: str | None = None
    ) -> list[dict[str, Any]]:
        """Spend, revenue, conversions and ROI % per period, sorted by period.

        Buckets use the configured granularity unless one is given.

        Spend and revenue fields per source come from the registry; every
        revenue record counts as one conversion.
        """
        spend_fields = self.pipeline.spend_sources()
        revenue_fields = self.pipeline.revenue_sources()

        def aggregate(items: tuple[Mapping[str, Any], ...]) -> dict[str, Any]:
            spend = sum(
                to_number(item.get(spend_fields[item[TYPE_KEY]]))
                for item in items
                if item.get(TYPE_KEY) in spend_fields
            )
            revenue_items = [i for i in items if i.get(TYPE_KEY) in revenue_fields]
            revenue = sum(
                to_number(item.get(revenue_fields[item[TYPE_KEY]]))
                for item in revenue_items
            )
            return {
                "total_spend": spend,
                "revenue": revenue,
                "conversions": len(revenue_items),
                "roi": (revenue - spend) / spend * 100 if spend > 0 else 0.0,
            }

        return sort_periods(
            group_by_period(
                records,
                DATE_KEY,
                granularity or self.config.granularity,
                aggregate,
                week_start=self.config.week_start,
            )
        )

    def get_funnel_stages(
        self,
        meta: list[dict[str, Any]],
        sms: list[dict[str, Any]],
        donations: list[dict[str, Any]],
    ) -> list[FunnelStage]:
        """Impressions -> ad clicks -> SMS delivered -> SMS clicks -> donations."""
        return [
            FunnelStage("Impressions", self._sum(meta, "impressions")),
            FunnelStage("Ad Clicks", self._sum(meta, "clicks")),
            FunnelStage("SMS Delivered", self._sum(sms, "messages_delivered")),
            FunnelStage("SMS Clicks", self._sum(sms, "clicks")),
            FunnelStage("Donations", float(len(donations))),
        ]

    def get_channel_inputs(
        self, meta: list[dict[str, Any]], sms: list[dict[str, Any]]
    ) -> list[ChannelInput]:
        """Conversions and spend for Meta Ads and SMS."""
        return [
            ChannelInput(
                name="Meta Ads",
                conversions=self._sum(meta, "conversions"),
                spend=self._total(meta, "meta"),
            ),
            ChannelInput(
                name="SMS",
                conversions=self._sum(sms, "conversions"),
                spend=self._total(sms, "sms"),
            ),
        ]

    def get_key_metrics(
        self, periods: list[dict[str, Any]], donations: list[dict[str, Any]]
    ) -> KeyMetrics:
        """Revenue trend, CAC, LTV and LTV/CAC with a sample-size confidence.

        Expects the daily series: each row is one day with data, which sets
        the period length used for donation frequency and confidence.
        The revenue trend compares the whole range with its first half.
        LTV = average donation x yearly frequency (capped) x retention years,
        where retention grows with the share of recurring donations.
        """
        cfg = self.config
        current_total = sum(p["revenue"] for p in periods)
        current_spend = sum(p["total_spend"] for p in periods)
        donors = len(donations)

        midpoint = len(periods) // 2
        previous_revenue = sum(p["revenue"] for p in periods[:midpoint])
        revenue_trend = calculate_trend(current_total, previous_revenue)

        cac = calculate_cac(current_spend, donors)

        avg_donation = current_total / donors if donors > 0 else 0.0
        period_days = len(periods) or 1
        donations_per_year = donors / period_days * DAYS_PER_YEAR
        frequency = donations_per_year / donors if donors > 0 else 0.0
        frequency = min(frequency or 1.0, cfg.max_donations_per_year)

        recurring = sum(1 for d in donations if to_bool(d.get("is_recurring")))
        recurring_rate = recurring / donors if donors > 0 else 0.0
        retention_years = (
            cfg.base_retention_years + recurring_rate * cfg.recurring_retention_bonus_years
        )

        ltv = calculate_ltv(avg_donation, frequency, retention_years)

        if donors >= cfg.high_confidence_donors and period_days >= cfg.high_confidence_days:
            confidence = "high"
        elif donors >= cfg.medium_confidence_donors:
            confidence = "medium"
        else:
            confidence = "low"

        return KeyMetrics(
            revenue=revenue_trend,
            cac=cac,
            ltv=ltv,
            ltv_cac_ratio=calculate_ltv_cac_ratio(ltv, cac),
            confidence=confidence,
            sample_size=donors,
            period_days=period_days,
        )

    def get_comparison_series(
        self,
        periods: list[dict[str, Any]],
        start: date | str,
        end: date | str,
        previous_periods: Sequence[Mapping[str, Any]] = (),
    ) -> list[dict[str, Any]]:
        """Revenue and spend per period next to the period one range earlier.

        Each period is paired with the one `end - start` days before it,
        looked up in the current series first, then in previous_periods.
        Periods with no counterpart compare against 0.

        Raises:
            ValueError: If start or end cannot be parsed as a date
        """
        start_dt, end_dt = to_datetime(start), to_datetime(end)
        if start_dt is None or end_dt is None:
            raise ValueError(f"Cannot parse comparison range {start!r} - {end!r}")
        shift = timedelta(days=abs((end_dt.date() - start_dt.date()).days))

        lookup = {str(p["period"]): p for p in previous_periods}
        lookup.update({str(p["period"]): p for p in periods})

        rows = []
        for p in periods:
            current = to_datetime(p["period"])
            previous: Mapping[str, Any] = {}
            if current is not None:
                previous = lookup.get((current.date() - shift).isoformat(), {})
            rows.append(
                {
                    "date": p["period"],
                    "current_revenue": p["revenue"],
                    "previous_revenue": previous.get("revenue", 0.0),
                    "current_spend": p["total_spend"],
                    "previous_spend": previous.get("total_spend", 0.0),
                }
            )
        return rows

    def export_periods(self, output: DashboardOutput, path: Path) -> Path | None:
        """Write the period series to CSV."""
        rows = [
            {
                "Date": p["period"],
                "Total Spend": p["total_spend"],
                "Revenue": p["revenue"],
                "Conversions": p["conversions"],
                "ROI %": f"{p['roi']:.2f}",
            }
            for p in output.periods
        ]
        return export_to_csv(rows, path)

    def generate_summary_dict(self, output: DashboardOutput) -> dict[str, Any]:
        """Convert DashboardOutput to a JSON-serializable dictionary."""
        km = output.key_metrics
        return {
            "periods": output.periods,
            "forecast": [
                {
                    "date": p.date,
                    "actual": p.actual,
                    "forecast": p.forecast,
                    "lower": p.lower,
                    "upper": p.upper,
                }
                for p in output.forecast
            ],
            "funnel": {
                "overall_conversion_rate": round(output.funnel.overall_conversion_rate, 4),
                "total_drop_off": output.funnel.total_drop_off,
                "is_sequential": output.funnel.is_sequential,
                "biggest_drop_off_stage": (
                    output.funnel.biggest_drop_off_stage.name
                    if output.funnel.biggest_drop_off_stage
                    else None
                ),
                "stages": [
                    {
                        "name": s.name,
                        "value": s.value,
                        "step_conversion_rate": s.step_conversion_rate,
                        "drop_off_percent": round(s.drop_off_percent, 2),
                    }
                    for s in output.funnel.stages
                ],
            },
            "attribution": [
                {
                    "platform": a.platform,
                    "campaign_id": a.campaign_id,
                    "first_touch": round(a.first_touch, 2),
                    "last_touch": round(a.last_touch, 2),
                    "linear": round(a.linear, 2),
                    "position_based": round(a.position_based, 2),
                    "time_decay": round(a.time_decay, 2),
                }
                for a in output.attribution
            ],
            "channels": [
                {
                    "name": c.name,
                    "contribution_pct": round(c.contribution, 2),
                    "efficiency": round(c.efficiency, 4),
                }
                for c in output.channels
            ],
            "key_metrics": {
                "revenue": km.revenue.current,
                "revenue_change_pct": round(km.revenue.change_percent, 2),
                "cac": round(km.cac, 2),
                "ltv": round(km.ltv, 2),
                "ltv_cac_ratio": round(km.ltv_cac_ratio, 2),
                "confidence": km.confidence,
                "sample_size": km.sample_size,
                "period_days": km.period_days,
            },
            "comparison": output.comparison,
            "insights": [
                {
                    "rule_id": i.rule_id,
                    "description": i.description,
                    "severity": i.severity.value,
                    "recommendation": i.recommendation,
                    "metrics": i.metrics,
                }
                for i in output.insights
            ],
        }

    def _total(self, records: list[dict[str, Any]], source_name: str) -> float:
        """Sum of the registry's spend (or revenue) field for one source."""
        entry = self.pipeline.source(source_name)
        value_field = entry.get("spend_field") or entry.get("revenue_field")
        return self._sum(records, value_field) if value_field else 0.0

    @staticmethod
    def _sum(records: list[dict[str, Any]], field_name: str) -> float:
        return sum(to_number(r.get(field_name)) for r in records)
