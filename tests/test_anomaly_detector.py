"""
Tests for AnomalyDetector
"""

from datetime import timedelta

import pytest

from tank_copilot.models.analytics_models import AnomalySeverity, Baseline
from tank_copilot.services.anomaly_detector import POSSIBLE_CAUSES, AnomalyDetector
from tests.fixtures.reading_fixtures import T0, daily_intervals


@pytest.fixture
def detector():
    return AnomalyDetector()


@pytest.fixture
def baseline_50():
    return Baseline(mean_daily_rate=50.0, stddev_daily_rate=5.0, sample_count=30, window_days=90)


class TestEvaluate:
    """Test the ratio decision rule"""

    def test_moderate_anomaly(self, detector, baseline_50):
        result = detector.evaluate(110.0, baseline_50, multiplier=2.0)

        assert result.ratio_to_baseline == pytest.approx(2.2)
        assert result.is_anomalous is True
        assert result.severity == AnomalySeverity.MODERATE
        assert result.threshold_used == 2.0

    def test_severe_anomaly(self, detector, baseline_50):
        result = detector.evaluate(160.0, baseline_50)

        assert result.severity == AnomalySeverity.SEVERE
        assert result.is_anomalous is True

    def test_severe_override_below_multiplier_not_severe(self, detector, baseline_50):
        result = detector.evaluate(110.0, baseline_50, multiplier=2.5, severe_multiplier=2.0)

        assert result.is_anomalous is False
        assert result.severity == AnomalySeverity.NONE

    def test_exactly_at_multiplier_is_anomalous(self, detector, baseline_50):
        assert detector.evaluate(100.0, baseline_50).is_anomalous is True

    def test_normal(self, detector, baseline_50):
        result = detector.evaluate(60.0, baseline_50)

        assert result.is_anomalous is False
        assert result.severity == AnomalySeverity.NONE
        assert result.possible_causes == []

    def test_low_consumption_flag(self, detector, baseline_50):
        result = detector.evaluate(10.0, baseline_50)

        assert result.low_consumption is True
        assert result.is_anomalous is False
        assert "sensor" in result.recommendation

    def test_missing_baseline_cannot_assess(self, detector):
        result = detector.evaluate(500.0, None)

        assert result.is_anomalous is False
        assert result.severity == AnomalySeverity.NONE
        assert result.ratio_to_baseline is None

    def test_zero_baseline_cannot_assess(self, detector):
        baseline = Baseline(0.0, 0.0, 10, 90)
        assert detector.evaluate(5.0, baseline).ratio_to_baseline is None

    def test_industry_multiplier(self, detector, baseline_50):
        # 2.2x is anomalous for general (2.0) but not for farming (2.5)
        assert detector.evaluate(110.0, baseline_50, industry="general").is_anomalous
        assert not detector.evaluate(110.0, baseline_50, industry="farming").is_anomalous
        assert detector.evaluate(95.0, baseline_50, industry="mining").is_anomalous

    def test_possible_causes_follow_industry(self, detector, baseline_50):
        result = detector.evaluate(200.0, baseline_50, industry="mining")
        assert result.possible_causes == POSSIBLE_CAUSES["mining"]

    def test_sustained_marks_potential_leak(self, detector, baseline_50):
        result = detector.evaluate(120.0, baseline_50, sustained=True)

        assert result.potential_leak is True
        assert result.unusual_consumption is False
        assert "leak" in result.recommendation


class TestDetect:
    """Test detection over classified intervals"""

    def test_single_spike_is_unusual_not_leak(self, detector, baseline_50):
        intervals = daily_intervals([50.0, 50.0, 50.0, 50.0, 150.0])
        result = detector.detect(intervals, baseline_50)

        # 3-day window: (50 + 50 + 150) / 3
        assert result.observed_daily_rate == pytest.approx(250.0 / 3)
        assert result.is_anomalous is False

        result = detector.detect(daily_intervals([50.0, 50.0, 50.0, 300.0]), baseline_50)
        assert result.is_anomalous is True
        assert result.unusual_consumption is True
        assert result.potential_leak is False

    def test_sustained_excess_is_leak(self, detector, baseline_50):
        intervals = daily_intervals([50.0] * 5 + [120.0, 130.0, 125.0])
        result = detector.detect(intervals, baseline_50)

        assert result.is_anomalous is True
        assert result.potential_leak is True

    def test_offline_intervals_excluded(self, detector, baseline_50):
        online = daily_intervals([50.0] * 5)
        offline = daily_intervals([400.0, 400.0], start=T0 + timedelta(days=5), online=False)
        result = detector.detect(online + offline, baseline_50)

        assert result.is_anomalous is False
        assert result.observed_daily_rate == pytest.approx(50.0)

    def test_no_baseline(self, detector):
        result = detector.detect(daily_intervals([50.0] * 3), None)
        assert result.is_anomalous is False
        assert result.ratio_to_baseline is None
