"""
Consumption & Refill Classifier

Walks adjacent reading pairs of a Series and labels each interval as
consumption, refill or noise. Every downstream aggregate (rolling average,
trend, baseline, anomaly, refill pattern) consumes these intervals; none of
them classifies on its own.

Policy, first match wins:
1. duration <= 0 or duration > max_interval_days  -> noise
2. level rose by >= refill threshold              -> refill
3. level fell                                     -> consumption
4. anything else (flat / small rise)              -> noise
"""

from typing import Iterable, List, Optional, Union

import structlog

from tank_copilot.errors import MalformedSeriesError
from tank_copilot.models.analytics_models import (
    ConsumptionInterval,
    IntervalClass,
    LevelUnit,
    Reading,
    Series,
)
from tank_copilot.settings import AnalyticsThresholds, RefillThreshold

logger = structlog.get_logger()

SECONDS_PER_DAY = 86400.0


def as_series(series: Union[Series, Iterable[Reading]]) -> Series:
    """
    Accept a Series or an iterable of Readings.

    Raises:
        MalformedSeriesError: input is not iterable or holds non-Readings
    """
    if isinstance(series, Series):
        return series
    try:
        readings = tuple(series)
    except TypeError:
        raise MalformedSeriesError(
            "Reading series is not iterable",
            details={"input_type": type(series).__name__},
        )
    for item in readings:
        if not isinstance(item, Reading):
            raise MalformedSeriesError(
                "Reading series contains a non-reading item",
                details={"item_type": type(item).__name__},
            )
    return Series(readings)


class ConsumptionClassifier:
    """
    Classifies reading intervals.

    Example Usage:
        classifier = ConsumptionClassifier()
        intervals = classifier.classify(series, capacity_liters=5000)
        consumption = [i for i in intervals if i.is_consumption]
    """

    def __init__(
        self,
        refill_threshold: Optional[Union[RefillThreshold, float]] = None,
        max_interval_days: Optional[float] = None,
        thresholds: Optional[AnalyticsThresholds] = None,
    ):
        thresholds = thresholds or AnalyticsThresholds()
        self.refill_threshold = (
            refill_threshold
            if refill_threshold is not None
            else thresholds.refill_threshold
        )
        self.max_interval_days = (
            max_interval_days
            if max_interval_days is not None
            else thresholds.max_interval_days
        )

    def resolve_threshold(
        self, unit: LevelUnit, capacity_liters: Optional[float] = None
    ) -> float:
        """Refill threshold in the unit of the series being classified."""
        if isinstance(self.refill_threshold, RefillThreshold):
            return self.refill_threshold.in_unit(unit, capacity_liters)
        return float(self.refill_threshold)

    def classify(
        self,
        series: Union[Series, Iterable[Reading]],
        capacity_liters: Optional[float] = None,
        unit: Optional[LevelUnit] = None,
    ) -> List[ConsumptionInterval]:
        """
        Classify every adjacent pair of readings that carry a level.

        Args:
            series: Normalized series (or iterable of Readings)
            capacity_liters: Needed only when the refill threshold unit
                differs from the series unit
            unit: Force percent or liters (defaults to the series' preferred unit)

        Returns:
            List of ConsumptionInterval, empty with fewer than 2 usable readings
        """
        series = as_series(series)
        unit = unit or series.preferred_unit()
        usable = [r for r in series if r.level(unit) is not None]
        if len(usable) < 2:
            return []

        threshold = self.resolve_threshold(unit, capacity_liters)
        intervals = [
            self.classify_pair(previous, current, threshold, unit)
            for previous, current in zip(usable, usable[1:])
        ]

        logger.debug(
            "Classified reading intervals",
            asset_id=series.asset_id,
            unit=unit.value,
            total=len(intervals),
            consumption=sum(1 for i in intervals if i.is_consumption),
            refills=sum(1 for i in intervals if i.is_refill),
        )
        return intervals

    def classify_pair(
        self,
        previous: Reading,
        current: Reading,
        refill_delta_threshold: float,
        unit: LevelUnit = LevelUnit.PERCENT,
    ) -> ConsumptionInterval:
        start_level = previous.level(unit)
        end_level = current.level(unit)
        delta = start_level - end_level
        duration = (current.timestamp - previous.timestamp).total_seconds() / SECONDS_PER_DAY

        if duration <= 0 or duration > self.max_interval_days:
            classification = IntervalClass.NOISE
        elif -delta >= refill_delta_threshold:
            classification = IntervalClass.REFILL
        elif delta > 0:
            classification = IntervalClass.CONSUMPTION
        else:
            classification = IntervalClass.NOISE

        return ConsumptionInterval(
            start_ts=previous.timestamp,
            end_ts=current.timestamp,
            duration_days=duration,
            delta_level=delta,
            classification=classification,
            unit=unit,
            start_level=start_level,
            end_level=end_level,
            online=previous.device_online and current.device_online,
        )
