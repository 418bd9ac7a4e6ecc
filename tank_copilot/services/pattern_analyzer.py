"""
Pattern Analyzer Service

Refill history and weekday usage derived from classified intervals.
"""

import calendar
from collections import defaultdict
from typing import Dict, List, Sequence

from tank_copilot.models.analytics_models import (
    ConsumptionInterval,
    RefillEvent,
    RefillPattern,
)
from tank_copilot.services.trend_analyzer import consumption_only


class PatternAnalyzer:
    """Refill pattern and weekly consumption pattern."""

    def refill_pattern(self, intervals: Sequence[ConsumptionInterval]) -> RefillPattern:
        """
        Last refill, average days between refills and the refill events.

        The average needs at least two refills, otherwise it is None.
        """
        events: List[RefillEvent] = [
            RefillEvent(timestamp=i.end_ts, amount=-i.delta_level, unit=i.unit)
            for i in intervals
            if i.is_refill
        ]
        if not events:
            return RefillPattern(None, None, 0, [])

        average_days = None
        if len(events) >= 2:
            spacings = [
                (later.timestamp - earlier.timestamp).total_seconds() / 86400.0
                for earlier, later in zip(events, events[1:])
            ]
            average_days = sum(spacings) / len(spacings)

        return RefillPattern(
            last_refill_date=events[-1].timestamp,
            average_days_between_refills=average_days,
            refill_count=len(events),
            events=events,
        )

    def weekly_pattern(self, intervals: Sequence[ConsumptionInterval]) -> Dict[str, float]:
        """Average daily rate per weekday (keyed Monday..Sunday, 0.0 when no data)."""
        rates: Dict[int, List[float]] = defaultdict(list)
        for interval in consumption_only(intervals):
            rates[interval.end_ts.weekday()].append(interval.daily_rate)

        return {
            calendar.day_name[day]: (sum(rates[day]) / len(rates[day]) if rates[day] else 0.0)
            for day in range(7)
        }
