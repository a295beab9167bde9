"""Tests for the linear trend forecast."""

import math

import pytest

from fundraising_analytics.analytics import forecast_trend
from fundraising_analytics.exceptions import InvalidInputError


def daily(values: list[float], start_day: int = 1) -> list[dict]:
    return [
        {"date": f"2024-01-{start_day + i:02d}", "value": v} for i, v in enumerate(values)
    ]


class TestForecastTrend:
    """Tests for forecast_trend()."""

    def test_length_and_fields(self) -> None:
        """History points carry actuals; future points carry forecast and band."""
        result = forecast_trend(daily([10, 20, 30, 40, 50]), horizon=3)

        assert len(result) == 8
        for point in result[:5]:
            assert point.actual is not None
            assert point.forecast is None and point.lower is None and point.upper is None
        for point in result[5:]:
            assert point.actual is None
            assert point.lower <= point.forecast <= point.upper

    def test_extends_the_line(self) -> None:
        """A perfect line continues exactly with a zero-width band."""
        result = forecast_trend(daily([10, 20, 30, 40, 50]), horizon=3)
        future = result[5:]

        assert [p.date for p in future] == ["2024-01-06", "2024-01-07", "2024-01-08"]
        assert [p.forecast for p in future] == pytest.approx([60.0, 70.0, 80.0])
        assert all(p.upper - p.lower == pytest.approx(0.0, abs=1e-9) for p in future)

    def test_band_width(self) -> None:
        """Band is 1.96 residual standard errors at 95%."""
        # Fit: 0.4x + 0.4, residuals sum of squares 3.2 over 4 points
        result = forecast_trend(daily([0, 2, 0, 2]), horizon=2)
        expected = 1.959964 * math.sqrt(0.8)

        for point in result[4:]:
            assert point.upper - point.forecast == pytest.approx(expected, rel=1e-5)
            assert point.forecast - point.lower == pytest.approx(expected, rel=1e-5)
        assert result[4].forecast == pytest.approx(2.0)

    def test_wider_band_at_higher_confidence(self) -> None:
        """Higher confidence widens the band."""
        history = daily([0, 2, 0, 2])
        narrow = forecast_trend(history, horizon=1, confidence_level=0.8)[-1]
        wide = forecast_trend(history, horizon=1, confidence_level=0.99)[-1]
        assert wide.upper - wide.lower > narrow.upper - narrow.lower

    def test_single_point_is_flat(self) -> None:
        """One point projects a flat line with no band."""
        result = forecast_trend([{"date": "2024-01-01", "value": 42}], horizon=2)

        assert len(result) == 3
        assert [p.date for p in result[1:]] == ["2024-01-02", "2024-01-03"]
        for point in result[1:]:
            assert point.forecast == 42.0
            assert point.lower == point.upper == 42.0

    def test_empty_history(self) -> None:
        """No history, no forecast."""
        assert forecast_trend([], horizon=7) == []

    def test_zero_horizon(self) -> None:
        """Horizon 0 returns the history only."""
        assert len(forecast_trend(daily([1, 2, 3]), horizon=0)) == 3

    def test_monthly_step(self) -> None:
        """Month starts one month apart continue month by month."""
        history = [
            {"date": "2024-11-01", "value": 100},
            {"date": "2024-12-01", "value": 200},
        ]
        result = forecast_trend(history, horizon=2)
        assert [p.date for p in result[2:]] == ["2025-01-01", "2025-02-01"]
        assert [p.forecast for p in result[2:]] == pytest.approx([300.0, 400.0])

    def test_weekly_step(self) -> None:
        """Weekly spacing is kept."""
        history = [
            {"date": "2024-01-01", "value": 1},
            {"date": "2024-01-08", "value": 2},
        ]
        result = forecast_trend(history, horizon=1)
        assert result[-1].date == "2024-01-15"

    def test_missing_values_count_as_zero(self) -> None:
        """Unparseable values are coerced to 0."""
        result = forecast_trend(
            [{"date": "2024-01-01", "value": None}, {"date": "2024-01-02", "value": "x"}],
            horizon=1,
        )
        assert result[0].actual == 0.0
        assert result[-1].forecast == 0.0

    def test_unparseable_last_date(self) -> None:
        """Future dates step on from the last date that parses."""
        history = [
            {"date": "2024-01-01", "value": 1},
            {"date": "2024-01-02", "value": 2},
            {"date": "later", "value": 3},
        ]
        result = forecast_trend(history, horizon=2)

        assert len(result) == len(history) + 2
        assert result[2].date == "later"
        assert [p.date for p in result[3:]] == ["2024-01-04", "2024-01-05"]
        assert [p.forecast for p in result[3:]] == pytest.approx([4.0, 5.0])

    def test_unparseable_middle_date(self) -> None:
        """Spacing is measured per position across an unparseable date."""
        history = [
            {"date": "2024-01-01", "value": 1},
            {"date": "", "value": 2},
            {"date": "2024-01-15", "value": 3},
        ]
        result = forecast_trend(history, horizon=1)
        assert result[-1].date == "2024-01-22"

    def test_no_parseable_dates(self) -> None:
        """Without any usable date only history is returned."""
        history = [{"date": "soon", "value": 1}, {"date": None, "value": 2}]
        assert len(forecast_trend(history, horizon=3)) == 2

    def test_history_dates_unchanged(self) -> None:
        """Historical timestamps are returned as given; future dates are days."""
        history = [
            {"date": "2024-01-01T08:00:00Z", "value": 1},
            {"date": "2024-01-02T08:00:00Z", "value": 2},
        ]
        result = forecast_trend(history, horizon=1)

        assert [p.date for p in result[:2]] == [
            "2024-01-01T08:00:00Z",
            "2024-01-02T08:00:00Z",
        ]
        assert result[-1].date == "2024-01-03"

    def test_rejects_bad_arguments(self) -> None:
        """Invalid horizon, confidence or history shape raise."""
        with pytest.raises(ValueError):
            forecast_trend(daily([1, 2]), horizon=-1)
        with pytest.raises(ValueError):
            forecast_trend(daily([1, 2]), confidence_level=1.5)
        with pytest.raises(InvalidInputError):
            forecast_trend({"date": "2024-01-01", "value": 1})
