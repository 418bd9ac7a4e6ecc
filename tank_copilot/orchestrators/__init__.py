"""Orchestration layer - composes services into per-asset and fleet workflows."""

from .asset_analytics import AssetAnalytics, AssetAnalyticsOrchestrator
from .refill_calendar import (
    RefillCalendarOrchestrator,
    due_within,
    filter_predictions,
    group_by_date,
    group_by_urgency,
    sort_by_urgency,
    unique_customers,
    urgency_summary,
)

__all__ = [
    "AssetAnalytics",
    "AssetAnalyticsOrchestrator",
    "RefillCalendarOrchestrator",
    "due_within",
    "filter_predictions",
    "group_by_date",
    "group_by_urgency",
    "sort_by_urgency",
    "unique_customers",
    "urgency_summary",
]
