"""
Tests for PatternAnalyzer
"""

from datetime import timedelta

import pytest

from tank_copilot.models.analytics_models import IntervalClass
from tank_copilot.services.consumption_classifier import ConsumptionClassifier
from tank_copilot.services.pattern_analyzer import PatternAnalyzer
from tests.fixtures.reading_fixtures import T0, build_series, daily_intervals


@pytest.fixture
def analyzer():
    return PatternAnalyzer()


class TestRefillPattern:
    """Test refill history"""

    def test_single_refill(self, analyzer, refill_scenario_series):
        intervals = ConsumptionClassifier().classify(refill_scenario_series)
        pattern = analyzer.refill_pattern(intervals)

        assert pattern.refill_count == 1
        assert pattern.last_refill_date == T0 + timedelta(days=3)
        assert pattern.average_days_between_refills is None
        assert pattern.events[0].amount == pytest.approx(25.0)

    def test_average_spacing(self, analyzer):
        levels = [80, 70, 60, 90, 80, 70, 60, 50, 85]
        intervals = ConsumptionClassifier().classify(build_series([float(v) for v in levels]))
        pattern = analyzer.refill_pattern(intervals)

        assert pattern.refill_count == 2
        assert pattern.average_days_between_refills == pytest.approx(5.0)

    def test_no_refills(self, analyzer):
        pattern = analyzer.refill_pattern(daily_intervals([2.0, 2.0]))

        assert pattern.refill_count == 0
        assert pattern.last_refill_date is None
        assert pattern.to_dict()["events"] == []


class TestWeeklyPattern:
    """Test weekday averages"""

    def test_weekday_keys_and_averages(self, analyzer):
        # T0 is a Monday, so interval ends fall Tuesday..Monday
        intervals = daily_intervals([1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 9.0])
        pattern = analyzer.weekly_pattern(intervals)

        assert list(pattern) == [
            "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
        ]
        assert pattern["Tuesday"] == pytest.approx((1.0 + 9.0) / 2)
        assert pattern["Monday"] == pytest.approx(7.0)

    def test_refills_ignored_and_missing_days_zero(self, analyzer):
        intervals = daily_intervals([-40.0], classification=IntervalClass.REFILL)
        pattern = analyzer.weekly_pattern(intervals)
        assert all(value == 0.0 for value in pattern.values())
