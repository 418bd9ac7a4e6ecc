"""
Baseline Calculator Service

Builds the long-horizon consumption profile (mean / stddev of daily rate)
used as the anomaly reference. Baselines are recomputed from raw history on
every request and are never persisted as a source of truth.

Only consumption-classified intervals count; refills and noise are excluded.
With fewer than ``min_baseline_samples`` intervals there is no baseline, and
callers must treat that as "cannot assess", never as zero.
"""

from datetime import datetime
from typing import Optional, Sequence

import numpy as np
import structlog

from tank_copilot.models.analytics_models import Baseline, ConsumptionInterval, LevelUnit
from tank_copilot.services.trend_analyzer import consumption_only, in_window
from tank_copilot.settings import AnalyticsThresholds

logger = structlog.get_logger()


class BaselineCalculator:
    """
    Example Usage:
        calculator = BaselineCalculator()
        baseline = calculator.calculate(intervals, capacity_liters=10000)
        if baseline is None:
            ...  # not enough history
    """

    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    def calculate(
        self,
        intervals: Sequence[ConsumptionInterval],
        capacity_liters: Optional[float] = None,
        window_days: Optional[float] = None,
        as_of: Optional[datetime] = None,
        asset_id: Optional[str] = None,
    ) -> Optional[Baseline]:
        """
        Compute the baseline over the window ending at ``as_of``.

        Args:
            intervals: Classified intervals (any classification)
            capacity_liters: Converts a percent baseline to liters/day when known
            window_days: Lookback (default 90 days)
            as_of: Window end (default: end of latest interval)
            asset_id: For logging only

        Returns:
            Baseline, or None with too few consumption intervals
        """
        window_days = window_days or self.thresholds.baseline_window_days
        if not intervals:
            return None
        anchor = as_of or intervals[-1].end_ts

        consumption = consumption_only(in_window(intervals, anchor, window_days))
        min_samples = self.thresholds.min_baseline_samples
        if len(consumption) < min_samples:
            logger.debug(
                "Insufficient samples for baseline",
                asset_id=asset_id,
                samples=len(consumption),
                required=min_samples,
            )
            return None

        rates = np.array([i.daily_rate for i in consumption], dtype=float)
        mean_rate = float(np.mean(rates))
        std_rate = float(np.std(rates))
        unit = consumption[0].unit

        mean_liters = None
        std_liters = None
        if unit == LevelUnit.LITERS:
            mean_liters, std_liters = mean_rate, std_rate
        elif capacity_liters and capacity_liters > 0:
            mean_liters = mean_rate / 100.0 * capacity_liters
            std_liters = std_rate / 100.0 * capacity_liters

        logger.debug(
            "Baseline computed",
            asset_id=asset_id,
            samples=len(consumption),
            mean=round(mean_rate, 3),
            std=round(std_rate, 3),
        )
        return Baseline(
            mean_daily_rate=mean_rate,
            stddev_daily_rate=std_rate,
            sample_count=len(consumption),
            window_days=window_days,
            unit=unit,
            mean_daily_liters=mean_liters,
            stddev_daily_liters=std_liters,
        )
