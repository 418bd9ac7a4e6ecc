"""
Rolling Average / Trend Analyzer

Aggregates classified consumption intervals into daily rates:
- rolling average over a window ending at ``as_of``
- week-over-week trend label
- previous-day usage
- consumption velocity (is usage accelerating?)

Windows are anchored at ``as_of`` (default: end of the latest interval). An
interval belongs to a window when its end timestamp lies in
(as_of - window, as_of].
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import structlog

from tank_copilot.models.analytics_models import ConsumptionInterval, Trend
from tank_copilot.settings import AnalyticsThresholds

logger = structlog.get_logger()


def consumption_only(intervals: Sequence[ConsumptionInterval]) -> List[ConsumptionInterval]:
    return [i for i in intervals if i.is_consumption]


def in_window(
    intervals: Sequence[ConsumptionInterval],
    window_end: datetime,
    window_days: float,
) -> List[ConsumptionInterval]:
    window_start = window_end - timedelta(days=window_days)
    return [i for i in intervals if window_start < i.end_ts <= window_end]


def average_rate(intervals: Sequence[ConsumptionInterval]) -> float:
    """Sum of consumption deltas over sum of their durations; 0.0 when empty."""
    consumption = consumption_only(intervals)
    total_days = sum(i.duration_days for i in consumption)
    if total_days <= 0:
        return 0.0
    return sum(i.delta_level for i in consumption) / total_days


class TrendAnalyzer:
    """
    Daily-rate and trend computations over classified intervals.

    Example Usage:
        analyzer = TrendAnalyzer()
        rate = analyzer.rolling_average(intervals)          # last 7 days
        trend = analyzer.trend(intervals)                   # Trend.STABLE ...
    """

    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    @staticmethod
    def _anchor(
        intervals: Sequence[ConsumptionInterval], as_of: Optional[datetime]
    ) -> Optional[datetime]:
        if as_of is not None:
            return as_of
        return intervals[-1].end_ts if intervals else None

    def rolling_average(
        self,
        intervals: Sequence[ConsumptionInterval],
        window_days: Optional[float] = None,
        as_of: Optional[datetime] = None,
    ) -> float:
        """
        Average daily consumption over the window.

        Returns exactly 0.0 when no consumption interval qualifies.
        """
        window_days = window_days or self.thresholds.rolling_window_days
        anchor = self._anchor(intervals, as_of)
        if anchor is None:
            return 0.0
        return average_rate(in_window(intervals, anchor, window_days))

    def classify_trend(self, recent_avg: float, prior_avg: float) -> Trend:
        """Label the relative change between two weekly averages."""
        if prior_avg <= 0:
            return Trend.STABLE
        change = (recent_avg - prior_avg) / prior_avg
        if change > self.thresholds.trend_change_ratio:
            return Trend.INCREASING
        if change < -self.thresholds.trend_change_ratio:
            return Trend.DECREASING
        return Trend.STABLE

    def trend(
        self,
        intervals: Sequence[ConsumptionInterval],
        as_of: Optional[datetime] = None,
    ) -> Trend:
        """
        Compare the recent window with the one before it.

        Each window needs ``min_trend_points`` consumption intervals, otherwise
        the trend is STABLE.
        """
        anchor = self._anchor(intervals, as_of)
        if anchor is None:
            return Trend.STABLE

        window = self.thresholds.trend_window_days
        recent = consumption_only(in_window(intervals, anchor, window))
        prior = consumption_only(
            in_window(intervals, anchor - timedelta(days=window), window)
        )

        min_points = self.thresholds.min_trend_points
        if len(recent) < min_points or len(prior) < min_points:
            logger.debug(
                "Not enough points for trend, defaulting to stable",
                recent_points=len(recent),
                prior_points=len(prior),
                required=min_points,
            )
            return Trend.STABLE

        return self.classify_trend(average_rate(recent), average_rate(prior))

    def previous_day_usage(
        self,
        intervals: Sequence[ConsumptionInterval],
        as_of: Optional[datetime] = None,
    ) -> float:
        """
        Daily consumption over the most recent 24-48h span.

        The span ends at the latest reading at or before ``as_of`` and starts
        at the latest reading between 48h and 24h before that. Falls back to
        the rolling average when no such starting reading exists.
        """
        anchor = self._anchor(intervals, as_of)
        ends = [i.end_ts for i in intervals if anchor is not None and i.end_ts <= anchor]
        if not ends:
            return self.rolling_average(intervals, as_of=as_of)

        span_end = max(ends)
        earliest = span_end - timedelta(hours=48)
        latest = span_end - timedelta(hours=24)
        starts = [i.start_ts for i in intervals if earliest <= i.start_ts <= latest]
        if not starts:
            return self.rolling_average(intervals, as_of=as_of)

        span_start = max(starts)
        span_days = (span_end - span_start).total_seconds() / 86400.0
        consumed = sum(
            i.delta_level
            for i in consumption_only(intervals)
            if i.start_ts >= span_start and i.end_ts <= span_end
        )
        return consumed / span_days

    def consumption_velocity(self, intervals: Sequence[ConsumptionInterval]) -> float:
        """
        Second-half average rate minus first-half average rate.

        Positive means consumption is accelerating. 0.0 with fewer than two
        consumption intervals.
        """
        consumption = consumption_only(intervals)
        if len(consumption) < 2:
            return 0.0
        middle = len(consumption) // 2
        return average_rate(consumption[middle:]) - average_rate(consumption[:middle])
