"""
Tests for TrendAnalyzer
"""

from datetime import timedelta

import pytest

from tank_copilot.models.analytics_models import ConsumptionInterval, IntervalClass, Trend
from tank_copilot.services.consumption_classifier import ConsumptionClassifier
from tank_copilot.services.trend_analyzer import TrendAnalyzer, average_rate
from tests.fixtures.reading_fixtures import T0, build_series, daily_intervals


@pytest.fixture
def analyzer():
    return TrendAnalyzer()


class TestRollingAverage:
    """Test rolling average over consumption intervals"""

    def test_end_to_end_scenario(self, analyzer, refill_scenario_series):
        intervals = ConsumptionClassifier().classify(refill_scenario_series)
        assert analyzer.rolling_average(intervals) == pytest.approx(5.0)

    def test_no_intervals_is_zero(self, analyzer):
        assert analyzer.rolling_average([]) == 0.0

    def test_only_refills_and_noise_is_zero(self, analyzer):
        intervals = daily_intervals([-30.0], classification=IntervalClass.REFILL)
        intervals += daily_intervals([0.0], start=T0 + timedelta(days=1), classification=IntervalClass.NOISE)

        result = analyzer.rolling_average(intervals)
        assert result == 0.0
        assert result == result  # not NaN

    def test_refill_excluded_regardless_of_size(self, analyzer):
        intervals = daily_intervals([4.0, 4.0])
        intervals += daily_intervals([-500.0], start=T0 + timedelta(days=2), classification=IntervalClass.REFILL)
        assert analyzer.rolling_average(intervals) == pytest.approx(4.0)

    def test_duration_weighted(self):
        intervals = [
            ConsumptionInterval(T0, T0 + timedelta(days=2), 2.0, 10.0, IntervalClass.CONSUMPTION),
            ConsumptionInterval(T0 + timedelta(days=2), T0 + timedelta(days=3), 1.0, 2.0, IntervalClass.CONSUMPTION),
        ]
        assert average_rate(intervals) == pytest.approx(4.0)

    def test_window_excludes_old_intervals(self, analyzer):
        intervals = daily_intervals([10.0] * 5 + [2.0] * 7)
        assert analyzer.rolling_average(intervals, window_days=7) == pytest.approx(2.0)
        assert analyzer.rolling_average(intervals, window_days=30) == pytest.approx(64.0 / 12)


class TestTrend:
    """Test week-over-week trend classification"""

    @pytest.mark.parametrize(
        "recent,expected",
        [(130.0, Trend.INCREASING), (108.0, Trend.STABLE), (70.0, Trend.DECREASING)],
    )
    def test_classify_trend(self, analyzer, recent, expected):
        assert analyzer.classify_trend(recent, 100.0) == expected

    def test_exactly_fifteen_percent_is_stable(self, analyzer):
        assert analyzer.classify_trend(115.0, 100.0) == Trend.STABLE

    def test_zero_prior_is_stable(self, analyzer):
        assert analyzer.classify_trend(50.0, 0.0) == Trend.STABLE

    def test_trend_from_intervals(self, analyzer):
        intervals = daily_intervals([100.0] * 7 + [130.0] * 7)
        assert analyzer.trend(intervals) == Trend.INCREASING

    def test_decreasing_from_intervals(self, analyzer):
        intervals = daily_intervals([100.0] * 7 + [70.0] * 7)
        assert analyzer.trend(intervals) == Trend.DECREASING

    def test_too_few_points_defaults_stable(self, analyzer):
        intervals = daily_intervals([100.0] * 2 + [300.0] * 7, start=T0 + timedelta(days=5))
        assert analyzer.trend(intervals) == Trend.STABLE

    def test_empty_is_stable(self, analyzer):
        assert analyzer.trend([]) == Trend.STABLE


class TestPreviousDayUsage:
    """Test previous-day consumption"""

    def test_uses_last_24h_pair(self, analyzer):
        intervals = daily_intervals([3.0, 3.0, 3.0, 9.0])
        assert analyzer.previous_day_usage(intervals) == pytest.approx(9.0)

    def test_hourly_readings(self, analyzer):
        series = build_series([100.0 - 0.25 * h for h in range(60)], step=timedelta(hours=1))
        intervals = ConsumptionClassifier().classify(series)
        assert analyzer.previous_day_usage(intervals) == pytest.approx(6.0)

    def test_falls_back_to_rolling_average(self, analyzer):
        # readings every 3 days: no start point 24-48h before the last one
        intervals = [
            ConsumptionInterval(T0, T0 + timedelta(days=3), 3.0, 6.0, IntervalClass.CONSUMPTION),
            ConsumptionInterval(T0 + timedelta(days=3), T0 + timedelta(days=6), 3.0, 9.0, IntervalClass.CONSUMPTION),
        ]
        assert analyzer.previous_day_usage(intervals) == pytest.approx(analyzer.rolling_average(intervals))

    def test_refill_inside_span_not_counted(self, analyzer):
        intervals = daily_intervals([4.0, 4.0])
        intervals.append(
            ConsumptionInterval(
                T0 + timedelta(days=2), T0 + timedelta(days=2, hours=12), 0.5, -40.0, IntervalClass.REFILL
            )
        )
        intervals.append(
            ConsumptionInterval(
                T0 + timedelta(days=2, hours=12), T0 + timedelta(days=3), 0.5, 2.0, IntervalClass.CONSUMPTION
            )
        )
        assert analyzer.previous_day_usage(intervals) == pytest.approx(2.0)

    def test_empty(self, analyzer):
        assert analyzer.previous_day_usage([]) == 0.0


class TestVelocity:
    """Test consumption velocity"""

    def test_accelerating(self, analyzer):
        assert analyzer.consumption_velocity(daily_intervals([2.0, 2.0, 5.0, 5.0])) == pytest.approx(3.0)

    def test_decelerating(self, analyzer):
        assert analyzer.consumption_velocity(daily_intervals([6.0, 6.0, 2.0, 2.0])) == pytest.approx(-4.0)

    def test_single_interval(self, analyzer):
        assert analyzer.consumption_velocity(daily_intervals([2.0])) == 0.0
