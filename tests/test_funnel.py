"""Tests for funnel analysis."""

import pytest

from fundraising_analytics.analytics import (
    FunnelStage,
    Severity,
    analyze_funnel,
    get_drop_off_severity,
    rank_stages,
)
from fundraising_analytics.exceptions import InvalidInputError


@pytest.fixture
def stages() -> list[FunnelStage]:
    return [
        FunnelStage("Impressions", 1000),
        FunnelStage("Clicks", 400),
        FunnelStage("Donations", 100),
    ]


class TestAnalyzeFunnel:
    """Tests for analyze_funnel()."""

    def test_rates(self, stages: list[FunnelStage]) -> None:
        """Step and overall conversion rates."""
        result = analyze_funnel(stages)

        assert result.stage_conversion_rates == pytest.approx([40.0, 25.0])
        assert result.overall_conversion_rate == pytest.approx(10.0)
        assert result.total_drop_off == 900
        assert result.is_sequential

    def test_stage_details(self, stages: list[FunnelStage]) -> None:
        """Per-stage drop-off and cumulative conversion."""
        first, clicks, donations = analyze_funnel(stages).stages

        assert first.step_conversion_rate is None
        assert first.cumulative_conversion_rate == 100.0
        assert clicks.drop_off_count == 600
        assert clicks.drop_off_percent == pytest.approx(60.0)
        assert donations.cumulative_conversion_rate == pytest.approx(10.0)

    def test_biggest_drop_off(self, stages: list[FunnelStage]) -> None:
        """Biggest drop-off is by percent lost, not by count."""
        result = analyze_funnel(stages)
        assert result.biggest_drop_off_stage.name == "Donations"

    def test_empty_funnel(self) -> None:
        """No stages: zero rates, no error."""
        result = analyze_funnel([])

        assert result.stages == []
        assert result.overall_conversion_rate == 0
        assert result.stage_conversion_rates == []
        assert result.total_drop_off == 0
        assert result.biggest_drop_off_stage is None

    def test_single_zero_stage(self) -> None:
        """A single empty stage is reported without rates."""
        result = analyze_funnel([FunnelStage("Visits", 0)])

        assert len(result.stages) == 1
        assert result.stages[0].cumulative_conversion_rate == 0.0
        assert result.overall_conversion_rate == 0
        assert result.total_drop_off == 0

    def test_zero_previous_stage(self) -> None:
        """Division by an empty stage yields 0, never an error."""
        result = analyze_funnel([FunnelStage("A", 0), FunnelStage("B", 10)])

        assert result.stage_conversion_rates == [0.0]
        assert result.overall_conversion_rate == 0.0
        assert result.stages[1].drop_off_count == 0
        assert not result.is_sequential
        assert result.biggest_drop_off_stage is None

    def test_accepts_mappings(self) -> None:
        """Stages may be plain dicts with string values."""
        result = analyze_funnel(
            [{"name": "Sent", "value": "1,000"}, {"name": "Clicked", "value": None}]
        )
        assert result.stages[0].value == 1000.0
        assert result.stages[1].value == 0.0
        assert result.overall_conversion_rate == 0.0

    def test_rejects_non_list(self) -> None:
        """Stages must be a list."""
        with pytest.raises(InvalidInputError):
            analyze_funnel({"name": "Sent", "value": 1})

    def test_rejects_bad_stage(self) -> None:
        """Each stage must be a FunnelStage or mapping."""
        with pytest.raises(InvalidInputError):
            analyze_funnel([("Sent", 1)])


class TestDropOffSeverity:
    """Tests for get_drop_off_severity()."""

    @pytest.mark.parametrize(
        "percent, expected",
        [
            (0, Severity.GREEN),
            (24.9, Severity.GREEN),
            (25, Severity.AMBER),
            (49.9, Severity.AMBER),
            (50, Severity.RED),
            (90, Severity.RED),
        ],
    )
    def test_bands(self, percent: float, expected: Severity) -> None:
        assert get_drop_off_severity(percent) is expected


class TestRankStages:
    """Tests for rank_stages()."""

    def test_sorted_by_value_with_share(self) -> None:
        """Non-sequential stages are ranked with their share of the total."""
        ranked = rank_stages(
            [FunnelStage("Email", 25), FunnelStage("SMS", 50), FunnelStage("Ads", 25)]
        )

        assert [r.name for r in ranked] == ["SMS", "Email", "Ads"]
        assert [r.share for r in ranked] == pytest.approx([50.0, 25.0, 25.0])

    def test_all_zero(self) -> None:
        """Zero total gives zero shares."""
        ranked = rank_stages([FunnelStage("A", 0)])
        assert ranked[0].share == 0.0
