"""
╔═══════════════════════════════════════════════════════════════════════════════╗
║                    🛢️ ASSET ANALYTICS ORCHESTRATOR v1.0.0                      ║
║                                                                                ║
║   raw readings → normalize → classify → rates/trend/baseline → anomaly &      ║
║   critical-level projection → refill prediction → delivery recommendation     ║
╚═══════════════════════════════════════════════════════════════════════════════╝

Thin orchestration layer: every computation lives in a service; this module
only threads one asset's data through them in order. ``analyze`` is pure
(raw rows in, results out); ``analyze_asset`` adds the reading-store fetch.

Author: Tank Copilot Team
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from tank_copilot.errors import AssetNotFoundError, MissingCapacityError
from tank_copilot.models.analytics_models import (
    AnalyticsSummary,
    AssetMetadata,
    CustomerDeliverySettings,
    DeliveryRecommendation,
    LevelUnit,
    OperationWindow,
    ProjectionStatus,
    RefillPrediction,
    Series,
)
from tank_copilot.repositories.asset_repository import AssetRepository
from tank_copilot.repositories.reading_repository import ReadingRepository
from tank_copilot.repositories.settings_repository import SettingsRepository
from tank_copilot.services.anomaly_detector import AnomalyDetector
from tank_copilot.services.baseline_calculator import BaselineCalculator
from tank_copilot.services.consumption_classifier import ConsumptionClassifier
from tank_copilot.services.delivery_recommender import DeliveryRecommender
from tank_copilot.services.level_predictor import LevelPredictor
from tank_copilot.services.pattern_analyzer import PatternAnalyzer
from tank_copilot.services.reading_normalizer import ReadingNormalizer
from tank_copilot.services.reliability_scorer import ReliabilityScorer
from tank_copilot.services.trend_analyzer import TrendAnalyzer
from tank_copilot.settings import AnalyticsThresholds

logger = logging.getLogger(__name__)


@dataclass
class AssetAnalytics:
    """All per-asset outputs of one pipeline run."""

    asset: AssetMetadata
    summary: AnalyticsSummary
    prediction: RefillPrediction
    recommendation: Optional[DeliveryRecommendation] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset.to_dict(),
            "summary": self.summary.to_dict(),
            "prediction": self.prediction.to_dict(),
            "recommendation": self.recommendation.to_dict() if self.recommendation else None,
        }


@dataclass
class _LevelState:
    """Current level and critical level in the series unit, plus percent views."""

    unit: LevelUnit
    current: float
    critical: float
    current_pct: Optional[float]
    critical_pct: float


class AssetAnalyticsOrchestrator:
    """
    Runs the full consumption analytics pipeline for one asset.

    Services are injected (defaults built from ``thresholds``); repositories
    are optional and only needed by the fetching entry points.
    """

    VERSION = "1.0.0"

    def __init__(
        self,
        reading_repo: Optional[ReadingRepository] = None,
        asset_repo: Optional[AssetRepository] = None,
        settings_repo: Optional[SettingsRepository] = None,
        thresholds: Optional[AnalyticsThresholds] = None,
        normalizer: Optional[ReadingNormalizer] = None,
        classifier: Optional[ConsumptionClassifier] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        baseline_calculator: Optional[BaselineCalculator] = None,
        anomaly_detector: Optional[AnomalyDetector] = None,
        level_predictor: Optional[LevelPredictor] = None,
        delivery_recommender: Optional[DeliveryRecommender] = None,
        reliability_scorer: Optional[ReliabilityScorer] = None,
        pattern_analyzer: Optional[PatternAnalyzer] = None,
    ):
        self.thresholds = thresholds or AnalyticsThresholds()
        self.reading_repo = reading_repo
        self.asset_repo = asset_repo
        self.settings_repo = settings_repo

        self.normalizer = normalizer or ReadingNormalizer()
        self.classifier = classifier or ConsumptionClassifier(thresholds=self.thresholds)
        self.trend_analyzer = trend_analyzer or TrendAnalyzer(self.thresholds)
        self.baseline_calculator = baseline_calculator or BaselineCalculator(self.thresholds)
        self.anomaly_detector = anomaly_detector or AnomalyDetector(self.thresholds)
        self.level_predictor = level_predictor or LevelPredictor(self.thresholds)
        self.delivery_recommender = delivery_recommender or DeliveryRecommender(self.thresholds)
        self.reliability_scorer = reliability_scorer or ReliabilityScorer(self.thresholds)
        self.pattern_analyzer = pattern_analyzer or PatternAnalyzer()

        logger.info(f"AssetAnalyticsOrchestrator v{self.VERSION} initialized")

    # ═══════════════════════════════════════════════════════════════════════════
    # DATA ACCESS
    # ═══════════════════════════════════════════════════════════════════════════

    def get_asset(self, asset_id: str) -> AssetMetadata:
        asset = self.asset_repo.get_asset(asset_id) if self.asset_repo else None
        if asset is None:
            raise AssetNotFoundError(asset_id)
        return asset

    def _fetch_window(self, now: datetime):
        return now - timedelta(days=self.thresholds.baseline_window_days), now

    def fetch_raw(self, asset: AssetMetadata, now: Optional[datetime] = None) -> List[Dict]:
        """Raw rows for the baseline lookback window."""
        from_ts, to_ts = self._fetch_window(now or datetime.utcnow())
        return self.reading_repo.fetch_readings(asset.asset_id, from_ts, to_ts)

    async def fetch_raw_async(
        self, asset: AssetMetadata, now: Optional[datetime] = None
    ) -> List[Dict]:
        from_ts, to_ts = self._fetch_window(now or datetime.utcnow())
        return await self.reading_repo.fetch_readings_async(asset.asset_id, from_ts, to_ts)

    def delivery_settings_for(self, asset: AssetMetadata) -> CustomerDeliverySettings:
        if self.settings_repo is None:
            return CustomerDeliverySettings()
        return self.settings_repo.get_delivery_settings(asset.customer_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # PIPELINE
    # ═══════════════════════════════════════════════════════════════════════════

    def analyze(
        self,
        asset: AssetMetadata,
        raw_rows: Any,
        now: Optional[datetime] = None,
        operations: Optional[List[OperationWindow]] = None,
        delivery_settings: Optional[CustomerDeliverySettings] = None,
        extra_buffer_days: float = 0.0,
    ) -> AssetAnalytics:
        """
        Run the full pipeline over raw rows for one asset.

        The delivery recommendation is included only when capacity is known;
        ``recommend_delivery`` is the entry point that insists on it.

        Raises:
            MissingCapacityError: liters-only series without capacity (the
                percent critical level cannot be expressed in liters)
        """
        now = now or datetime.utcnow()
        series = self.normalizer.normalize(raw_rows, asset.asset_id, asset.capacity_liters)
        reliability = self.reliability_scorer.score(series, asset.source)
        confidence = self.reliability_scorer.confidence(reliability)

        unit = series.preferred_unit()
        intervals = self.classifier.classify(series, asset.capacity_liters, unit)
        as_of = series.last.timestamp if series.last else None

        rolling = self.trend_analyzer.rolling_average(intervals, as_of=as_of)
        previous_day = self.trend_analyzer.previous_day_usage(intervals, as_of=as_of)
        trend = self.trend_analyzer.trend(intervals, as_of=as_of)
        velocity = self.trend_analyzer.consumption_velocity(intervals)

        baseline = self.baseline_calculator.calculate(
            intervals, asset.capacity_liters, as_of=as_of, asset_id=asset.asset_id
        )
        anomaly = self.anomaly_detector.detect(
            intervals, baseline, asset.industry, as_of=as_of, asset_id=asset.asset_id
        )
        refill_pattern = self.pattern_analyzer.refill_pattern(intervals)
        weekly_pattern = self.pattern_analyzer.weekly_pattern(intervals)

        levels = self._level_state(series, asset, unit)
        if levels is None:
            projection_days, projection_date = None, None
            status = ProjectionStatus.NO_CONSUMPTION
            prediction = RefillPrediction.unknown(asset)
            prediction.reliability_score = reliability.score
            logger.debug(f"Asset {asset.asset_id}: no usable readings")
        else:
            projection = self.level_predictor.project(
                levels.current, levels.critical, rolling, now
            )
            projection_days = projection.days_remaining
            projection_date = projection.predicted_date
            status = projection.status
            prediction = self.level_predictor.build_prediction(
                asset,
                projection,
                levels.current_pct,
                rolling if rolling > 0 else None,
                confidence,
                reliability.score,
            )

        summary = AnalyticsSummary(
            asset_id=asset.asset_id,
            unit=unit,
            rolling_average=rolling,
            previous_day_usage=previous_day,
            trend=trend,
            consumption_velocity=velocity,
            days_to_critical=projection_days,
            predicted_refill_date=projection_date,
            projection_status=status,
            anomaly=anomaly,
            reliability=reliability,
            refill_pattern=refill_pattern,
            weekly_pattern=weekly_pattern,
            baseline=baseline,
            last_reading=series.last,
        )

        recommendation = None
        if levels is not None and asset.capacity_liters:
            recommendation = self._recommend(
                asset, levels, rolling, unit, now, operations, delivery_settings, extra_buffer_days
            )

        return AssetAnalytics(asset, summary, prediction, recommendation)

    def _level_state(
        self, series: Series, asset: AssetMetadata, unit: LevelUnit
    ) -> Optional[_LevelState]:
        latest = next((r for r in reversed(series.readings) if r.level(unit) is not None), None)
        if latest is None:
            return None

        critical_pct = self.level_predictor.critical_level_pct(asset)
        current = latest.level(unit)
        if unit == LevelUnit.PERCENT:
            return _LevelState(unit, current, critical_pct, current, critical_pct)

        capacity = asset.capacity_liters
        if not capacity:
            raise MissingCapacityError("critical level in liters", asset_id=asset.asset_id)
        return _LevelState(
            unit,
            current,
            critical_pct / 100.0 * capacity,
            current / capacity * 100.0,
            critical_pct,
        )

    def _recommend(
        self,
        asset: AssetMetadata,
        levels: _LevelState,
        rolling: float,
        unit: LevelUnit,
        now: datetime,
        operations: Optional[List[OperationWindow]],
        delivery_settings: Optional[CustomerDeliverySettings],
        extra_buffer_days: float,
    ) -> DeliveryRecommendation:
        rate_pct = rolling
        if unit == LevelUnit.LITERS:
            rate_pct = rolling / asset.capacity_liters * 100.0
        return self.delivery_recommender.recommend(
            current_level_pct=levels.current_pct,
            capacity_liters=asset.capacity_liters,
            daily_rate_pct=rate_pct if rate_pct > 0 else None,
            critical_level_pct=levels.critical_pct,
            settings=delivery_settings or self.delivery_settings_for(asset),
            operations=operations,
            extra_buffer_days=extra_buffer_days,
            industry=asset.industry,
            now=now,
            asset_id=asset.asset_id,
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # ENTRY POINTS
    # ═══════════════════════════════════════════════════════════════════════════

    def analyze_asset(
        self,
        asset_id: str,
        now: Optional[datetime] = None,
        operations: Optional[List[OperationWindow]] = None,
        extra_buffer_days: float = 0.0,
    ) -> AssetAnalytics:
        """Fetch metadata and readings, then analyze."""
        asset = self.get_asset(asset_id)
        rows = self.fetch_raw(asset, now)
        return self.analyze(
            asset, rows, now=now, operations=operations, extra_buffer_days=extra_buffer_days
        )

    async def analyze_asset_async(
        self,
        asset_id: str,
        now: Optional[datetime] = None,
        operations: Optional[List[OperationWindow]] = None,
        extra_buffer_days: float = 0.0,
    ) -> AssetAnalytics:
        """Same as analyze_asset with every store lookup run in the default executor."""
        loop = asyncio.get_running_loop()
        asset = await loop.run_in_executor(None, self.get_asset, asset_id)
        rows = await self.fetch_raw_async(asset, now)
        delivery_settings = await loop.run_in_executor(None, self.delivery_settings_for, asset)
        return self.analyze(
            asset,
            rows,
            now=now,
            operations=operations,
            delivery_settings=delivery_settings,
            extra_buffer_days=extra_buffer_days,
        )

    def predict(
        self, asset: AssetMetadata, raw_rows: Any, now: Optional[datetime] = None
    ) -> RefillPrediction:
        """Refill prediction only (no delivery settings lookup)."""
        return self.analyze(
            asset, raw_rows, now=now, delivery_settings=CustomerDeliverySettings()
        ).prediction

    def recommend_delivery(
        self,
        asset_id: str,
        now: Optional[datetime] = None,
        operations: Optional[List[OperationWindow]] = None,
        extra_buffer_days: float = 0.0,
    ) -> DeliveryRecommendation:
        """
        Delivery recommendation for one asset.

        Raises:
            MissingCapacityError: asset has no capacity configured
        """
        asset = self.get_asset(asset_id)
        if not asset.capacity_liters:
            raise MissingCapacityError("delivery volume", asset_id=asset_id)
        rows = self.fetch_raw(asset, now)
        analytics = self.analyze(
            asset, rows, now=now, operations=operations, extra_buffer_days=extra_buffer_days
        )
        if analytics.recommendation is None:
            return DeliveryRecommendation(
                urgency=analytics.prediction.urgency,
                recommended_order_date=None,
                recommended_volume=None,
                operation_type=None,
                buffer_days=None,
                reasoning="No level readings available",
            )
        return analytics.recommendation
