"""
Critical-Level & Empty-Date Predictor

Projects how many days remain until an asset reaches its critical level and
turns that into a RefillPrediction with urgency and confidence.

days_remaining = round((current - critical) / rolling_avg, 1)

Not computable (None, never 0) when:
- rolling_avg <= 0            -> ProjectionStatus.NO_CONSUMPTION
- current <= critical         -> ProjectionStatus.AT_OR_BELOW_CRITICAL
"""

from datetime import datetime, timedelta
from typing import Optional

import structlog

from tank_copilot.models.analytics_models import (
    AssetMetadata,
    Confidence,
    CriticalLevelProjection,
    ProjectionStatus,
    RefillPrediction,
    Urgency,
)
from tank_copilot.settings import AnalyticsThresholds

logger = structlog.get_logger()


class LevelPredictor:
    """
    Example Usage:
        predictor = LevelPredictor()
        projection = predictor.project(current_level=40, critical_level=20,
                                       daily_rate=5)
        projection.days_remaining  # 4.0
    """

    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    def critical_level_pct(self, asset: Optional[AssetMetadata] = None) -> float:
        """Asset-specific minimum when configured, global default otherwise."""
        if asset is not None and asset.critical_level_pct is not None:
            return asset.critical_level_pct
        return self.thresholds.critical_level_pct

    def project(
        self,
        current_level: float,
        critical_level: float,
        daily_rate: Optional[float],
        now: Optional[datetime] = None,
    ) -> CriticalLevelProjection:
        """
        Project days remaining until ``critical_level``.

        All three values must be in the same unit (percent or liters).
        """
        if current_level <= critical_level:
            return CriticalLevelProjection(None, None, ProjectionStatus.AT_OR_BELOW_CRITICAL)
        if daily_rate is None or daily_rate <= 0:
            return CriticalLevelProjection(None, None, ProjectionStatus.NO_CONSUMPTION)

        days = round((current_level - critical_level) / daily_rate, 1)
        now = now or datetime.utcnow()
        return CriticalLevelProjection(
            days_remaining=days,
            predicted_date=now + timedelta(days=days),
            status=ProjectionStatus.PROJECTED,
        )

    def urgency_for(self, projection: CriticalLevelProjection) -> Urgency:
        """
        critical: at/below critical, or days_remaining <= critical_days
        warning:  days_remaining <= warning_days
        normal:   further out
        unknown:  no discernible consumption
        """
        if projection.status == ProjectionStatus.AT_OR_BELOW_CRITICAL:
            return Urgency.CRITICAL
        if projection.status == ProjectionStatus.NO_CONSUMPTION:
            return Urgency.UNKNOWN
        if projection.days_remaining <= self.thresholds.critical_days:
            return Urgency.CRITICAL
        if projection.days_remaining <= self.thresholds.warning_days:
            return Urgency.WARNING
        return Urgency.NORMAL

    def build_prediction(
        self,
        asset: AssetMetadata,
        projection: CriticalLevelProjection,
        current_level_pct: Optional[float],
        daily_consumption: Optional[float],
        confidence: Confidence,
        reliability_score: Optional[float] = None,
    ) -> RefillPrediction:
        """Assemble the RefillPrediction for one asset."""
        urgency = self.urgency_for(projection)
        prediction = RefillPrediction(
            asset_id=asset.asset_id,
            current_level_pct=current_level_pct,
            daily_consumption=daily_consumption,
            days_remaining=projection.days_remaining,
            predicted_refill_date=(
                projection.predicted_date.date() if projection.predicted_date else None
            ),
            urgency=urgency,
            confidence=confidence,
            asset_name=asset.name,
            customer_id=asset.customer_id,
            customer_name=asset.customer_name,
            reliability_score=reliability_score,
        )
        logger.debug(
            "Refill prediction built",
            asset_id=asset.asset_id,
            days_remaining=projection.days_remaining,
            urgency=urgency.value,
            confidence=confidence.value,
        )
        return prediction
