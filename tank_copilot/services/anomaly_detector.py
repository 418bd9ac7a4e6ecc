"""
Anomaly Detector Service

Compares recent observed consumption with the baseline using an
industry-specific multiplier.

- ratio >= anomaly multiplier        -> anomalous (moderate)
- ratio >= severe multiplier         -> severe
- every one of the last N online consumption intervals above the
  multiplier                         -> potential leak (sustained, not a spike)
- ratio < low-consumption ratio      -> low consumption (possible sensor issue)

Offline-device intervals are excluded from the observed estimate. Without a
baseline the detector reports "cannot assess" (not anomalous, ratio None).

Author: Tank Copilot Team
"""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import structlog

from tank_copilot.models.analytics_models import (
    AnomalyResult,
    AnomalySeverity,
    Baseline,
    ConsumptionInterval,
)
from tank_copilot.services.trend_analyzer import average_rate, consumption_only, in_window
from tank_copilot.settings import AnalyticsThresholds, IndustryProfile, get_industry_profile

logger = structlog.get_logger()


POSSIBLE_CAUSES: Dict[str, List[str]] = {
    "farming": [
        "Irrigation pumps running longer than usual",
        "Harvest or seeding equipment refuelling from this tank",
        "Leak in tank, fittings or transfer line",
    ],
    "mining": [
        "Increased haul-truck activity",
        "Generator running on extended shifts",
        "Leak in tank, fittings or transfer line",
    ],
    "general": [
        "Increased operational usage",
        "Leak in tank, fittings or transfer line",
        "Meter or sensor calibration fault",
    ],
}


class AnomalyDetector:
    """
    Example Usage:
        detector = AnomalyDetector()
        result = detector.evaluate(observed_daily_rate=110, baseline=baseline)
        if result.is_anomalous:
            print(result.severity, result.recommendation)
    """

    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    def evaluate(
        self,
        observed_daily_rate: Optional[float],
        baseline: Optional[Baseline],
        industry: Optional[str] = None,
        multiplier: Optional[float] = None,
        severe_multiplier: Optional[float] = None,
        sustained: bool = False,
    ) -> AnomalyResult:
        """
        Decide whether an observed daily rate is anomalous against a baseline.

        Args:
            observed_daily_rate: Recent daily consumption (same unit as baseline)
            baseline: Baseline or None
            industry: Selects multipliers and possible causes
            multiplier: Overrides the industry anomaly multiplier
            severe_multiplier: Overrides the industry severe multiplier
            sustained: Whether the excess held across consecutive intervals

        Returns:
            AnomalyResult
        """
        profile = get_industry_profile(industry)
        multiplier = multiplier if multiplier is not None else profile.anomaly_multiplier
        severe_multiplier = (
            severe_multiplier if severe_multiplier is not None else profile.severe_multiplier
        )

        if baseline is None or baseline.mean_daily_rate <= 0 or observed_daily_rate is None:
            return AnomalyResult(
                is_anomalous=False,
                severity=AnomalySeverity.NONE,
                ratio_to_baseline=None,
                threshold_used=multiplier,
                observed_daily_rate=observed_daily_rate,
                baseline_mean=baseline.mean_daily_rate if baseline else None,
                recommendation="Not enough consumption history to assess anomalies",
            )

        ratio = observed_daily_rate / baseline.mean_daily_rate
        is_anomalous = ratio >= multiplier
        if is_anomalous and ratio >= severe_multiplier:
            severity = AnomalySeverity.SEVERE
        elif is_anomalous:
            severity = AnomalySeverity.MODERATE
        else:
            severity = AnomalySeverity.NONE

        potential_leak = is_anomalous and sustained
        low_consumption = ratio < self.thresholds.low_consumption_ratio

        result = AnomalyResult(
            is_anomalous=is_anomalous,
            severity=severity,
            ratio_to_baseline=ratio,
            threshold_used=multiplier,
            observed_daily_rate=observed_daily_rate,
            baseline_mean=baseline.mean_daily_rate,
            unusual_consumption=is_anomalous and not potential_leak,
            potential_leak=potential_leak,
            low_consumption=low_consumption,
        )
        result.recommendation = self._recommendation(result)
        if is_anomalous:
            result.possible_causes = list(
                POSSIBLE_CAUSES.get(profile.name, POSSIBLE_CAUSES["general"])
            )
        return result

    def detect(
        self,
        intervals: Sequence[ConsumptionInterval],
        baseline: Optional[Baseline],
        industry: Optional[str] = None,
        as_of: Optional[datetime] = None,
        asset_id: Optional[str] = None,
    ) -> AnomalyResult:
        """
        Run detection over classified intervals.

        The observed rate is the average over the recent window
        (``anomaly_window_days``) using online-device intervals only.
        """
        online = [i for i in intervals if i.online]
        profile = get_industry_profile(industry)

        observed = None
        if online:
            anchor = as_of or online[-1].end_ts
            recent = consumption_only(
                in_window(online, anchor, self.thresholds.anomaly_window_days)
            )
            if recent:
                observed = average_rate(recent)

        sustained = self.is_sustained(online, baseline, profile)
        result = self.evaluate(observed, baseline, industry=profile.name, sustained=sustained)

        if result.is_anomalous:
            logger.info(
                "⚠️ Consumption anomaly detected",
                asset_id=asset_id,
                ratio=round(result.ratio_to_baseline, 2),
                severity=result.severity.value,
                potential_leak=result.potential_leak,
            )
        return result

    def is_sustained(
        self,
        intervals: Sequence[ConsumptionInterval],
        baseline: Optional[Baseline],
        profile: IndustryProfile,
    ) -> bool:
        """True when the last N consumption intervals all exceed the multiplier."""
        if baseline is None or baseline.mean_daily_rate <= 0:
            return False
        required = self.thresholds.sustained_intervals
        consumption = consumption_only(intervals)
        if len(consumption) < required:
            return False
        limit = profile.anomaly_multiplier * baseline.mean_daily_rate
        return all(i.daily_rate >= limit for i in consumption[-required:])

    @staticmethod
    def _recommendation(result: AnomalyResult) -> str:
        ratio_pct = round((result.ratio_to_baseline or 0) * 100)
        if result.potential_leak:
            return (
                f"Sustained consumption at {ratio_pct}% of normal. "
                "Inspect the tank and lines for leaks or unauthorized draw."
            )
        if result.severity == AnomalySeverity.SEVERE:
            return (
                f"Consumption at {ratio_pct}% of normal. "
                "Verify activity on site and schedule an inspection."
            )
        if result.is_anomalous:
            return f"Consumption at {ratio_pct}% of normal. Monitor over the next few days."
        if result.low_consumption:
            return (
                f"Consumption at {ratio_pct}% of normal. "
                "Check the sensor if the site is operating normally."
            )
        return "Consumption within normal range"
