"""Data models for the tank analytics pipeline."""

from .analytics_models import (
    URGENCY_ORDER,
    AnalyticsSummary,
    AnomalyResult,
    AnomalySeverity,
    AssetMetadata,
    Baseline,
    Confidence,
    ConsumptionInterval,
    CriticalLevelProjection,
    CustomerDeliverySettings,
    DeliveryRecommendation,
    IntervalClass,
    LevelUnit,
    OperationWindow,
    ProjectionStatus,
    Reading,
    ReadingSource,
    RefillEvent,
    RefillPattern,
    RefillPrediction,
    ReliabilityReport,
    Series,
    Trend,
    Urgency,
)

__all__ = [
    "URGENCY_ORDER",
    "AnalyticsSummary",
    "AnomalyResult",
    "AnomalySeverity",
    "AssetMetadata",
    "Baseline",
    "Confidence",
    "ConsumptionInterval",
    "CriticalLevelProjection",
    "CustomerDeliverySettings",
    "DeliveryRecommendation",
    "IntervalClass",
    "LevelUnit",
    "OperationWindow",
    "ProjectionStatus",
    "Reading",
    "ReadingSource",
    "RefillEvent",
    "RefillPattern",
    "RefillPrediction",
    "ReliabilityReport",
    "Series",
    "Trend",
    "Urgency",
]
