"""
Data-Reliability Scorer

Scores a normalized series for how far its analytics can be trusted:

    score = clamp(uptime_pct - gap_penalty, 0, 100)

uptime_pct is the share of readings reported while the device was online.
Each gap longer than the expected reporting interval (2h for sensors, one
week for manual dips) costs min(max_gap_penalty, gap_hours - 1) points.

The report feeds the per-prediction confidence label.
"""

from typing import Optional

import structlog

from tank_copilot.models.analytics_models import (
    Confidence,
    ReadingSource,
    ReliabilityReport,
    Series,
)
from tank_copilot.settings import AnalyticsThresholds

logger = structlog.get_logger()


class ReliabilityScorer:
    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    def _expectations(self, source: ReadingSource):
        if source == ReadingSource.MANUAL:
            return (
                self.thresholds.manual_expected_gap_hours,
                self.thresholds.manual_min_readings_per_day,
            )
        return (
            self.thresholds.sensor_expected_gap_hours,
            self.thresholds.sensor_min_readings_per_day,
        )

    def score(
        self, series: Series, source: Optional[ReadingSource] = None
    ) -> ReliabilityReport:
        """
        Score a series.

        Args:
            series: Normalized series
            source: Reporting source; defaults to the latest reading's source
        """
        if series.is_empty:
            return ReliabilityReport(
                score=0.0,
                uptime_pct=0.0,
                gap_count=0,
                largest_gap_hours=0.0,
                readings_per_day=0.0,
                sample_count=0,
                is_sparse=True,
                latest_online=False,
            )

        source = source or series.last.source
        expected_gap_hours, min_per_day = self._expectations(source)

        count = len(series)
        online = sum(1 for r in series if r.device_online)
        uptime_pct = online / count * 100.0

        gap_count = 0
        largest_gap = 0.0
        penalty = 0.0
        for previous, current in zip(series.readings, series.readings[1:]):
            gap_hours = (current.timestamp - previous.timestamp).total_seconds() / 3600.0
            largest_gap = max(largest_gap, gap_hours)
            if gap_hours > expected_gap_hours:
                gap_count += 1
                penalty += min(self.thresholds.max_gap_penalty, gap_hours - 1)

        span_days = (series.last.timestamp - series.first.timestamp).total_seconds() / 86400.0
        readings_per_day = count / span_days if span_days > 0 else float(count)

        report = ReliabilityReport(
            score=max(0.0, min(100.0, uptime_pct - penalty)),
            uptime_pct=uptime_pct,
            gap_count=gap_count,
            largest_gap_hours=largest_gap,
            readings_per_day=readings_per_day,
            sample_count=count,
            is_sparse=count < 2 or readings_per_day < min_per_day,
            latest_online=series.last.device_online,
        )
        logger.debug(
            "Reliability scored",
            asset_id=series.asset_id,
            score=round(report.score, 1),
            gaps=gap_count,
            sparse=report.is_sparse,
        )
        return report

    def confidence(self, report: ReliabilityReport) -> Confidence:
        """
        high:   latest reading online, score and sample count both good
        low:    latest reading offline, low score, too few samples, or sparse
        medium: everything in between
        """
        t = self.thresholds
        if (
            not report.latest_online
            or report.score < t.low_reliability_score
            or report.sample_count < t.low_confidence_samples
            or report.is_sparse
        ):
            return Confidence.LOW
        if (
            report.score >= t.high_reliability_score
            and report.sample_count >= t.high_confidence_samples
        ):
            return Confidence.HIGH
        return Confidence.MEDIUM
