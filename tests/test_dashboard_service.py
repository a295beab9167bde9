"""Tests for the dashboard service."""

import json
from pathlib import Path

import pytest

from fundraising_analytics.analytics import Severity
from fundraising_analytics.exceptions import RecordValidationError
from fundraising_analytics.services import DashboardOutput, DashboardService
from fundraising_analytics.settings import AnalyticsConfig


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def ad_metrics() -> list[dict]:
    return [
        {
            "date": "2024-01-01",
            "campaign_id": "c1",
            "spend": 100,
            "impressions": 10000,
            "clicks": 200,
            "conversions": 3,
        },
        {
            "date": "2024-01-02",
            "campaign_id": "c1",
            "spend": 50,
            "impressions": 5000,
            "clicks": 100,
            "conversions": 1,
        },
    ]


@pytest.fixture
def sms_metrics() -> list[dict]:
    return [
        {
            "send_date": "2024-01-01T09:00:00Z",
            "cost": 20,
            "messages_sent": 1000,
            "messages_delivered": 950,
            "clicks": 40,
            "conversions": 2,
        }
    ]


@pytest.fixture
def transactions() -> list[dict]:
    return [
        {"transaction_date": "2024-01-01", "amount": 100, "is_recurring": True},
        {"transaction_date": "2024-01-01", "amount": 140, "is_recurring": False},
        {"transaction_date": "2024-01-02", "amount": "$60.00", "is_recurring": "false"},
    ]


@pytest.fixture
def attribution_rows() -> list[dict]:
    return [
        {"platform": "meta", "campaign_id": "c1", "first_touch_attribution": 100},
        {"platform": "meta", "campaign_id": "c1", "linear_attribution": "50"},
    ]


@pytest.fixture
def output(ad_metrics, sms_metrics, transactions, attribution_rows) -> DashboardOutput:
    """Dashboard over two days of data with a previous period of 100."""
    return DashboardService().build_dashboard(
        ad_metrics=ad_metrics,
        sms_metrics=sms_metrics,
        transactions=transactions,
        attribution_rows=attribution_rows,
        previous_transactions=[{"transaction_date": "2023-12-31", "amount": 100}],
    )


# =============================================================================
# UNIT TESTS
# =============================================================================


class TestPeriodSeries:
    """Tests for the period series."""

    def test_daily_rows(self, output: DashboardOutput) -> None:
        assert output.periods == [
            {
                "period": "2024-01-01",
                "total_spend": 120.0,
                "revenue": 240.0,
                "conversions": 2,
                "roi": pytest.approx(100.0),
            },
            {
                "period": "2024-01-02",
                "total_spend": 50.0,
                "revenue": 60.0,
                "conversions": 1,
                "roi": pytest.approx(20.0),
            },
        ]

    def test_weekly_granularity(self, ad_metrics, sms_metrics, transactions) -> None:
        service = DashboardService(AnalyticsConfig(granularity="week"))
        output = service.build_dashboard(ad_metrics, sms_metrics, transactions)

        assert len(output.periods) == 1
        assert output.periods[0]["period"] == "2024-01-01"
        assert output.periods[0]["total_spend"] == 170.0
        assert output.periods[0]["revenue"] == 300.0
        assert output.key_metrics.period_days == 2


class TestPanels:
    """Tests for forecast, funnel, attribution and channels."""

    def test_forecast_length(self, output: DashboardOutput) -> None:
        assert len(output.forecast) == 2 + 7
        assert output.forecast[0].actual == 240.0

    def test_funnel_stages(self, output: DashboardOutput) -> None:
        names = [s.name for s in output.funnel.stages]
        values = [s.value for s in output.funnel.stages]

        assert names == [
            "Impressions",
            "Ad Clicks",
            "SMS Delivered",
            "SMS Clicks",
            "Donations",
        ]
        assert values == [15000, 300, 950, 40, 3]
        assert not output.funnel.is_sequential

    def test_attribution(self, output: DashboardOutput) -> None:
        assert len(output.attribution) == 1
        assert output.attribution[0].first_touch == 100.0
        assert output.attribution[0].linear == 50.0

    def test_channels(self, output: DashboardOutput) -> None:
        meta, sms = output.channels
        assert meta.contribution == pytest.approx(200 / 3)
        assert meta.efficiency == pytest.approx(4 / 150)
        assert sms.contribution == pytest.approx(100 / 3)
        assert sms.efficiency == pytest.approx(0.1)


class TestKeyMetrics:
    """Tests for get_key_metrics()."""

    def test_values(self, output: DashboardOutput) -> None:
        km = output.key_metrics

        assert km.revenue.current == 300.0
        assert km.revenue.previous == 240.0
        assert km.revenue.change_percent == pytest.approx(25.0)
        assert km.cac == pytest.approx(170 / 3)
        # 100 avg x 12/year cap x (1.5 + 2.5 / 3) years
        assert km.ltv == pytest.approx(100 * 12 * (1.5 + 2.5 / 3))
        assert km.ltv_cac_ratio == pytest.approx(km.ltv / km.cac)
        assert km.sample_size == 3
        assert km.period_days == 2
        assert km.confidence == "low"

    def test_days_independent_of_granularity(self) -> None:
        """Weekly or monthly buckets still measure the range in days."""
        days = [f"2024-01-{d:02d}" for d in range(1, 15)]
        ads = [{"date": d, "spend": 30} for d in days]
        donations = [
            {"transaction_date": d, "amount": 20, "is_recurring": False}
            for d in days
            for _ in range(3)
        ]

        outputs = {
            granularity: DashboardService(
                AnalyticsConfig(granularity=granularity)
            ).build_dashboard(ads, [], donations)
            for granularity in ("day", "week", "month")
        }

        assert len(outputs["week"].periods) == 2
        for output in outputs.values():
            km = output.key_metrics
            assert km.period_days == 14
            assert km.sample_size == 42
            assert km.confidence == "high"
            assert km.cac == pytest.approx(10.0)
        assert outputs["week"].key_metrics == outputs["day"].key_metrics

    def test_confidence_levels(self) -> None:
        service = DashboardService()
        periods = [
            {"period": f"2024-01-{d:02d}", "revenue": 10.0, "total_spend": 1.0}
            for d in range(1, 15)
        ]
        donations = [{"amount": 10}] * 30

        assert service.get_key_metrics(periods, donations).confidence == "high"
        assert service.get_key_metrics(periods[:5], donations).confidence == "medium"
        assert service.get_key_metrics(periods, donations[:9]).confidence == "low"


class TestComparisonSeries:
    """Tests for the period-over-period comparison series."""

    def test_build_dashboard_comparison(
        self, ad_metrics, sms_metrics, transactions
    ) -> None:
        """Each day pairs with the day one range-length earlier, else 0."""
        output = DashboardService().build_dashboard(
            ad_metrics,
            sms_metrics,
            transactions,
            previous_transactions=[{"transaction_date": "2023-12-31", "amount": 100}],
            start_date="2024-01-01",
            end_date="2024-01-02",
        )

        assert output.comparison == [
            {
                "date": "2024-01-01",
                "current_revenue": 240.0,
                "previous_revenue": 100.0,
                "current_spend": 120.0,
                "previous_spend": 0.0,
            },
            {
                "date": "2024-01-02",
                "current_revenue": 60.0,
                "previous_revenue": 240.0,
                "current_spend": 50.0,
                "previous_spend": 120.0,
            },
        ]

    def test_missing_previous_is_zero(self) -> None:
        """Periods without a counterpart compare against 0."""
        periods = [
            {"period": "2024-03-10", "revenue": 5.0, "total_spend": 2.0},
            {"period": "2024-03-11", "revenue": 7.0, "total_spend": 3.0},
        ]
        rows = DashboardService().get_comparison_series(
            periods, "2024-03-01", "2024-03-08"
        )

        assert [r["previous_revenue"] for r in rows] == [0.0, 0.0]
        assert [r["previous_spend"] for r in rows] == [0.0, 0.0]
        assert [r["current_revenue"] for r in rows] == [5.0, 7.0]

    def test_not_built_without_range(self, output: DashboardOutput) -> None:
        assert output.comparison == []

    def test_rejects_unparseable_range(self) -> None:
        with pytest.raises(ValueError, match="comparison range"):
            DashboardService().get_comparison_series([], "last week", "2024-01-07")


class TestBuildDashboard:
    """Tests for build_dashboard() end to end."""

    def test_milestone_insight(self, output: DashboardOutput) -> None:
        milestones = [i for i in output.insights if i.rule_id == "milestone"]
        assert len(milestones) == 1
        assert milestones[0].severity is Severity.GREEN

    def test_empty_inputs(self) -> None:
        output = DashboardService().build_dashboard([], [], [])

        assert output.periods == []
        assert output.forecast == []
        assert output.attribution == []
        assert output.insights == []
        assert output.funnel.overall_conversion_rate == 0
        assert output.key_metrics.cac == 0
        assert output.key_metrics.ltv == 0

    def test_validation(self, ad_metrics, sms_metrics, transactions) -> None:
        """Currency strings fail strict row validation."""
        with pytest.raises(RecordValidationError):
            DashboardService().build_dashboard(
                ad_metrics, sms_metrics, transactions, validate=True
            )

    def test_summary_is_json_serializable(self, output: DashboardOutput) -> None:
        summary = DashboardService().generate_summary_dict(output)
        decoded = json.loads(json.dumps(summary))

        assert decoded["key_metrics"]["confidence"] == "low"
        assert decoded["funnel"]["biggest_drop_off_stage"] == "Ad Clicks"
        assert decoded["insights"][0]["severity"] == "green"

    def test_export_periods(self, output: DashboardOutput, tmp_path: Path) -> None:
        path = DashboardService().export_periods(output, tmp_path / "daily.csv")
        lines = path.read_text().splitlines()

        assert lines[0] == "Date,Total Spend,Revenue,Conversions,ROI %"
        assert lines[1] == "2024-01-01,120.0,240.0,2,100.00"
