"""
Tests for AssetAnalyticsOrchestrator (full per-asset pipeline)
"""

import threading
from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from tank_copilot.errors import AssetNotFoundError, MissingCapacityError, ReadingStoreError
from tank_copilot.models.analytics_models import (
    AssetMetadata,
    Confidence,
    CustomerDeliverySettings,
    LevelUnit,
    OperationWindow,
    ProjectionStatus,
    Trend,
    Urgency,
)
from tank_copilot.orchestrators.asset_analytics import AssetAnalyticsOrchestrator
from tests.fixtures.reading_fixtures import T0, build_series, steady_levels

NOW = T0 + timedelta(days=3)


@pytest.fixture
def orchestrator():
    return AssetAnalyticsOrchestrator()


@pytest.fixture
def wired_orchestrator(sample_asset, sample_reading_rows):
    asset_repo = MagicMock()
    asset_repo.get_asset.return_value = sample_asset
    reading_repo = MagicMock()
    reading_repo.fetch_readings.return_value = sample_reading_rows
    reading_repo.fetch_readings_async = AsyncMock(return_value=sample_reading_rows)
    settings_repo = MagicMock()
    settings_repo.get_delivery_settings.return_value = CustomerDeliverySettings(
        lead_time_days=2.0, target_level_pct=90.0
    )
    return AssetAnalyticsOrchestrator(
        reading_repo=reading_repo, asset_repo=asset_repo, settings_repo=settings_repo
    )


class TestEndToEnd:
    """Test the pipeline from raw rows to outputs"""

    def test_refill_scenario(self, orchestrator, sample_asset, refill_scenario_series):
        result = orchestrator.analyze(sample_asset, refill_scenario_series, now=NOW)
        summary = result.summary

        assert summary.unit == LevelUnit.PERCENT
        assert summary.rolling_average == pytest.approx(5.0)
        assert summary.refill_pattern.refill_count == 1
        assert summary.refill_pattern.last_refill_date == T0 + timedelta(days=3)
        assert summary.days_to_critical == 15.0
        assert summary.projection_status == ProjectionStatus.PROJECTED
        assert summary.trend == Trend.STABLE
        assert summary.baseline is None
        assert summary.anomaly.is_anomalous is False

        prediction = result.prediction
        assert prediction.current_level_pct == 95.0
        assert prediction.days_remaining == 15.0
        assert prediction.predicted_refill_date == date(2026, 1, 23)
        assert prediction.urgency == Urgency.NORMAL
        assert prediction.confidence == Confidence.MEDIUM

        recommendation = result.recommendation
        assert recommendation.urgency == Urgency.NORMAL
        assert recommendation.recommended_volume == 0.0

    def test_raw_rows_from_store(self, orchestrator, sample_asset, sample_reading_rows):
        result = orchestrator.analyze(sample_asset, sample_reading_rows, now=datetime(2026, 1, 7, 8))

        assert result.summary.rolling_average == pytest.approx(5.0)
        assert result.summary.previous_day_usage == pytest.approx(5.0)
        assert result.prediction.days_remaining == 10.0

    def test_long_history_builds_baseline(self, orchestrator, sample_asset):
        series = build_series(steady_levels(95.0, 2.0, 30))
        result = orchestrator.analyze(sample_asset, series, now=series.last.timestamp)

        assert result.summary.baseline is not None
        assert result.summary.baseline.mean_daily_rate == pytest.approx(2.0)
        assert result.summary.baseline.mean_daily_liters == pytest.approx(200.0)
        assert result.summary.anomaly.ratio_to_baseline == pytest.approx(1.0)

    def test_below_critical(self, orchestrator, sample_asset):
        result = orchestrator.analyze(sample_asset, build_series([30.0, 22.0, 15.0]))

        assert result.summary.days_to_critical is None
        assert result.summary.projection_status == ProjectionStatus.AT_OR_BELOW_CRITICAL
        assert result.prediction.urgency == Urgency.CRITICAL
        assert result.recommendation.urgency == Urgency.CRITICAL

    def test_no_readings(self, orchestrator, sample_asset):
        result = orchestrator.analyze(sample_asset, [])

        assert result.prediction.urgency == Urgency.UNKNOWN
        assert result.prediction.confidence == Confidence.LOW
        assert result.summary.rolling_average == 0.0
        assert result.summary.days_to_critical is None
        assert result.recommendation is None

    def test_malformed_input_is_empty_not_error(self, orchestrator, sample_asset):
        result = orchestrator.analyze(sample_asset, "garbage")
        assert result.prediction.urgency == Urgency.UNKNOWN

    def test_liters_series_with_capacity(self, orchestrator):
        asset = AssetMetadata(asset_id="DIP-1", capacity_liters=10000.0, industry="mining")
        rows = [
            {"created_at": (T0 + timedelta(days=d)).isoformat(), "value": 6000 - 400 * d}
            for d in range(4)
        ]
        result = orchestrator.analyze(asset, rows, now=T0 + timedelta(days=3))

        # capacity fills percent, so analysis runs in percent: 4%/day
        assert result.summary.unit == LevelUnit.PERCENT
        assert result.summary.rolling_average == pytest.approx(4.0)
        assert result.prediction.days_remaining == pytest.approx(7.0)

    def test_uncalibrated_percent_uses_liters(self, orchestrator, sample_asset):
        rows = [
            {
                "reading_timestamp": (T0 + timedelta(days=d)).isoformat() + "Z",
                "calibrated_fill_percentage": 0,
                "asset_reported_litres": 8000 - 300 * d,
                "device_online": True,
            }
            for d in range(10)
        ]
        result = orchestrator.analyze(sample_asset, rows, now=T0 + timedelta(days=9))

        # 5300 L of 10000 L is 53%, falling 3%/day towards 20%
        assert result.prediction.current_level_pct == pytest.approx(53.0)
        assert result.summary.rolling_average == pytest.approx(3.0)
        assert result.prediction.days_remaining == pytest.approx(11.0)
        assert result.prediction.urgency == Urgency.NORMAL

    def test_flat_below_critical_recommends_now(self, orchestrator, sample_asset):
        series = build_series([15.0, 15.0, 15.0])
        now = series.last.timestamp
        result = orchestrator.analyze(sample_asset, series, now=now)

        assert result.prediction.urgency == Urgency.CRITICAL
        assert result.recommendation.urgency == Urgency.CRITICAL
        assert result.recommendation.recommended_order_date == now.date()

    def test_liters_only_without_capacity_raises(self, orchestrator):
        asset = AssetMetadata(asset_id="DIP-2")
        rows = [{"created_at": "2026-01-05T08:00:00", "value": 500}, {"created_at": "2026-01-06T08:00:00", "value": 450}]
        with pytest.raises(MissingCapacityError):
            orchestrator.analyze(asset, rows)

    def test_operations_flow_to_recommendation(self, orchestrator, sample_asset):
        series = build_series([60.0, 58.0, 56.0, 54.0])
        now = series.last.timestamp
        harvest = OperationWindow("harvest", now, now + timedelta(days=10), 4.0)
        result = orchestrator.analyze(sample_asset, series, now=now, operations=[harvest])

        assert result.recommendation.operation_type == "harvest"
        assert result.recommendation.days_to_critical == pytest.approx(34.0 / 8.0)

    def test_to_dict_serializable(self, orchestrator, sample_asset, refill_scenario_series):
        d = orchestrator.analyze(sample_asset, refill_scenario_series, now=NOW).to_dict()

        assert d["summary"]["trend"] == "stable"
        assert d["prediction"]["urgency"] == "normal"
        assert d["asset"]["asset_id"] == "TANK-01"


class TestEntryPoints:
    """Test fetching entry points"""

    def test_analyze_asset_uses_repositories(self, wired_orchestrator):
        result = wired_orchestrator.analyze_asset("TANK-01", now=datetime(2026, 1, 7, 8))

        wired_orchestrator.reading_repo.fetch_readings.assert_called_once()
        asset_id, from_ts, to_ts = wired_orchestrator.reading_repo.fetch_readings.call_args[0]
        assert asset_id == "TANK-01"
        assert to_ts - from_ts == timedelta(days=90)
        assert result.recommendation.recommended_volume == pytest.approx(2000.0)

    def test_unknown_asset(self, wired_orchestrator):
        wired_orchestrator.asset_repo.get_asset.return_value = None
        with pytest.raises(AssetNotFoundError):
            wired_orchestrator.analyze_asset("NOPE")

    def test_store_failure_propagates(self, wired_orchestrator):
        wired_orchestrator.reading_repo.fetch_readings.side_effect = ReadingStoreError("down")
        with pytest.raises(ReadingStoreError):
            wired_orchestrator.analyze_asset("TANK-01")

    def test_recommend_delivery_requires_capacity(self, wired_orchestrator):
        wired_orchestrator.asset_repo.get_asset.return_value = AssetMetadata(asset_id="X")
        with pytest.raises(MissingCapacityError):
            wired_orchestrator.recommend_delivery("X")

    def test_recommend_delivery(self, wired_orchestrator):
        rec = wired_orchestrator.recommend_delivery("TANK-01", now=datetime(2026, 1, 7, 8))

        # 50 points / 5 per day = 10 days, lead time 2 from customer settings
        assert rec.buffer_days == pytest.approx(8.0)
        assert rec.urgency == Urgency.NORMAL

    @pytest.mark.asyncio
    async def test_analyze_asset_async(self, wired_orchestrator):
        result = await wired_orchestrator.analyze_asset_async("TANK-01", now=datetime(2026, 1, 7, 8))

        wired_orchestrator.reading_repo.fetch_readings_async.assert_awaited_once()
        assert result.summary.rolling_average == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_async_lookups_run_off_event_loop(self, wired_orchestrator, sample_asset):
        loop_thread = threading.get_ident()
        lookup_threads = []

        def get_asset(asset_id):
            lookup_threads.append(threading.get_ident())
            return sample_asset

        wired_orchestrator.asset_repo.get_asset.side_effect = get_asset
        result = await wired_orchestrator.analyze_asset_async("TANK-01", now=datetime(2026, 1, 7, 8))

        assert lookup_threads and lookup_threads[0] != loop_thread
        wired_orchestrator.settings_repo.get_delivery_settings.assert_called_once_with("C-100")
        # target level 90% from the customer settings row
        assert result.recommendation.recommended_volume == pytest.approx(2000.0)
