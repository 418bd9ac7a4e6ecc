"""
Delivery Recommender Service

Turns a level projection into an order decision:
- buffer_days = days_to_critical - lead_time - extra_buffer_days
- order date  = today + max(0, floor(buffer_days))
- urgency     = critical (buffer <= 0), warning (<= 3), normal, or unknown
                when no consumption rate is available (an asset already at
                or below critical is critical and due today regardless)
- volume      = liters needed to reach target_level_pct of capacity

Upcoming operations (harvest, blasting...) whose fuel-impact multiplier
exceeds the customer's spike threshold are simulated piecewise: the rate is
multiplied inside the operation window, which pulls the critical date (and
therefore the order date) forward. The operation that yields the earliest
critical date is reported as ``operation_type``.

``extra_buffer_days`` is the hook for weather/road-closure risk; this module
only consumes the number.

Author: Tank Copilot Team
"""

import math
from datetime import date, datetime, timedelta
from typing import List, Optional, Tuple

import structlog

from tank_copilot.errors import MissingCapacityError
from tank_copilot.models.analytics_models import (
    CustomerDeliverySettings,
    DeliveryRecommendation,
    OperationWindow,
    Urgency,
)
from tank_copilot.settings import AnalyticsThresholds, get_industry_profile

logger = structlog.get_logger()


class DeliveryRecommender:
    """
    Example Usage:
        recommender = DeliveryRecommender()
        rec = recommender.recommend(
            current_level_pct=45,
            capacity_liters=10000,
            daily_rate_pct=3,
            critical_level_pct=20,
            settings=CustomerDeliverySettings(),
        )
        print(rec.urgency, rec.recommended_order_date, rec.recommended_volume)
    """

    def __init__(self, thresholds: Optional[AnalyticsThresholds] = None):
        self.thresholds = thresholds or AnalyticsThresholds()

    def recommend(
        self,
        current_level_pct: float,
        capacity_liters: Optional[float],
        daily_rate_pct: Optional[float],
        critical_level_pct: float,
        settings: Optional[CustomerDeliverySettings] = None,
        operations: Optional[List[OperationWindow]] = None,
        extra_buffer_days: float = 0.0,
        industry: Optional[str] = None,
        now: Optional[datetime] = None,
        asset_id: Optional[str] = None,
    ) -> DeliveryRecommendation:
        """
        Recommend when and how much to deliver.

        Raises:
            MissingCapacityError: capacity is unknown (volume needs it)
        """
        if not capacity_liters or capacity_liters <= 0:
            raise MissingCapacityError("delivery volume", asset_id=asset_id)

        settings = settings or CustomerDeliverySettings()
        now = now or datetime.utcnow()
        today = now.date()
        volume = self.recommended_volume(
            current_level_pct, capacity_liters, settings.target_level_pct
        )

        # at or below critical the order is due now, whatever the rate
        has_rate = daily_rate_pct is not None and daily_rate_pct > 0
        if not has_rate and current_level_pct > critical_level_pct:
            return DeliveryRecommendation(
                urgency=Urgency.UNKNOWN,
                recommended_order_date=None,
                recommended_volume=volume,
                operation_type=None,
                buffer_days=None,
                days_to_critical=None,
                reasoning="No consumption rate available; cannot time the delivery",
            )

        days_to_critical, operation_type = self.days_to_critical(
            current_level_pct,
            critical_level_pct,
            daily_rate_pct,
            settings.spike_threshold_multiplier,
            self._applicable_operations(operations, industry),
            now,
        )

        buffer_days = days_to_critical - settings.lead_time_days - extra_buffer_days
        order_date = today + timedelta(days=max(0, math.floor(buffer_days)))
        urgency = self.urgency_for(buffer_days)

        recommendation = DeliveryRecommendation(
            urgency=urgency,
            recommended_order_date=order_date,
            recommended_volume=volume,
            operation_type=operation_type,
            buffer_days=buffer_days,
            days_to_critical=days_to_critical,
            reasoning=self._reasoning(
                days_to_critical, settings, extra_buffer_days, operation_type, order_date, today
            ),
        )
        logger.debug(
            "Delivery recommendation",
            asset_id=asset_id,
            urgency=urgency.value,
            buffer_days=round(buffer_days, 2),
            operation_type=operation_type,
        )
        return recommendation

    def urgency_for(self, buffer_days: Optional[float]) -> Urgency:
        if buffer_days is None:
            return Urgency.UNKNOWN
        if buffer_days <= 0:
            return Urgency.CRITICAL
        if buffer_days <= self.thresholds.delivery_warning_buffer_days:
            return Urgency.WARNING
        return Urgency.NORMAL

    @staticmethod
    def recommended_volume(
        current_level_pct: float, capacity_liters: float, target_level_pct: float
    ) -> float:
        """Liters needed to bring the asset up to the target level."""
        target_liters = target_level_pct / 100.0 * capacity_liters
        current_liters = current_level_pct / 100.0 * capacity_liters
        return max(0.0, target_liters - current_liters)

    def days_to_critical(
        self,
        current_level_pct: float,
        critical_level_pct: float,
        daily_rate_pct: float,
        spike_threshold: float,
        operations: List[OperationWindow],
        now: datetime,
    ) -> Tuple[float, Optional[str]]:
        """
        Raw days to critical, shortened by the most demanding spike operation.

        Returns:
            (days_to_critical, operation_type or None)
        """
        remaining = current_level_pct - critical_level_pct
        if remaining <= 0:
            return 0.0, None

        best_days = remaining / daily_rate_pct
        best_operation = None
        for operation in operations:
            if operation.fuel_impact_multiplier <= spike_threshold:
                continue
            days = self.simulate_with_operation(remaining, daily_rate_pct, operation, now)
            if days < best_days:
                best_days = days
                best_operation = operation.operation_type
        return best_days, best_operation

    @staticmethod
    def simulate_with_operation(
        remaining: float,
        daily_rate: float,
        operation: OperationWindow,
        now: datetime,
    ) -> float:
        """Days until ``remaining`` is used up, with the rate multiplied inside the window."""
        start = max(0.0, (operation.start - now).total_seconds() / 86400.0)
        end = max(start, (operation.end - now).total_seconds() / 86400.0)
        spiked_rate = daily_rate * operation.fuel_impact_multiplier

        before = daily_rate * start
        if remaining <= before:
            return remaining / daily_rate
        remaining -= before

        during = spiked_rate * (end - start)
        if remaining <= during:
            return start + remaining / spiked_rate
        remaining -= during

        return end + remaining / daily_rate

    @staticmethod
    def _applicable_operations(
        operations: Optional[List[OperationWindow]], industry: Optional[str]
    ) -> List[OperationWindow]:
        if not operations:
            return []
        if industry is not None and not get_industry_profile(industry).operation_windows_enabled:
            return []
        return list(operations)

    @staticmethod
    def _reasoning(
        days_to_critical: float,
        settings: CustomerDeliverySettings,
        extra_buffer_days: float,
        operation_type: Optional[str],
        order_date: date,
        today: date,
    ) -> str:
        parts = [f"{days_to_critical:.1f} days to critical level"]
        if operation_type:
            parts.append(f"accelerated by upcoming {operation_type}")
        parts.append(f"{settings.lead_time_days:g} day lead time")
        if extra_buffer_days:
            parts.append(f"{extra_buffer_days:g} extra day(s) for access risk")
        when = "today" if order_date <= today else f"by {order_date.isoformat()}"
        return f"Order {when}: " + ", ".join(parts)
