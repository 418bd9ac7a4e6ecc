"""
Tank Analytics Router - v1.0.0
Consumption analytics, refill predictions and delivery recommendations
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from tank_copilot.orchestrators.refill_calendar import (
    due_within,
    filter_predictions,
    group_by_date,
    sort_by_urgency,
    unique_customers,
    urgency_summary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tankAnalytics/api", tags=["Tank Analytics"])

_architecture: Optional[Dict[str, Any]] = None


def get_architecture() -> Dict[str, Any]:
    """Lazily wired repositories/services/orchestrators (overridable in tests)."""
    global _architecture
    if _architecture is None:
        from tank_copilot.config_helper import setup_architecture

        _architecture = setup_architecture()
    return _architecture


@router.get("/assets/{asset_id}/analytics")
async def get_asset_analytics(
    asset_id: str,
    extra_buffer_days: float = Query(default=0.0, ge=0, description="Access-risk buffer"),
    arch: Dict[str, Any] = Depends(get_architecture),
):
    """
    Full analytics summary for one asset

    Returns rolling average, trend, previous-day usage, days to critical,
    anomaly flags, reliability and the refill prediction.
    """
    analytics = await arch["orchestrators"]["analytics"].analyze_asset_async(
        asset_id, extra_buffer_days=extra_buffer_days
    )
    return analytics.to_dict()


@router.get("/assets/{asset_id}/refill-prediction")
async def get_refill_prediction(
    asset_id: str,
    arch: Dict[str, Any] = Depends(get_architecture),
):
    analytics = await arch["orchestrators"]["analytics"].analyze_asset_async(asset_id)
    return analytics.prediction.to_dict()


@router.get("/assets/{asset_id}/delivery-recommendation")
def get_delivery_recommendation(
    asset_id: str,
    extra_buffer_days: float = Query(default=0.0, ge=0),
    arch: Dict[str, Any] = Depends(get_architecture),
):
    """Order date, volume and urgency; 422 when the asset has no capacity."""
    recommendation = arch["orchestrators"]["analytics"].recommend_delivery(
        asset_id, extra_buffer_days=extra_buffer_days
    )
    return recommendation.to_dict()


@router.get("/fleet/refill-calendar")
async def get_refill_calendar(
    customer_id: Optional[str] = Query(default=None),
    urgency: Optional[str] = Query(default=None, description="critical|warning|normal|unknown"),
    search: Optional[str] = Query(default=None),
    days: int = Query(default=7, ge=1, le=90, description="Window for 'due soon'"),
    arch: Dict[str, Any] = Depends(get_architecture),
):
    """
    Fleet refill calendar

    Predictions for every asset in scope, grouped by date, with urgency
    counts and the customer list for filter dropdowns.
    """
    calendar = arch["orchestrators"]["calendar"]
    predictions = await calendar.build_fleet_predictions_async(customer_id=customer_id)

    filtered = sort_by_urgency(filter_predictions(predictions, urgency=urgency, search=search))
    return {
        "predictions": [p.to_dict() for p in filtered],
        "calendar": {
            (key or "unscheduled"): [p.asset_id for p in items]
            for key, items in group_by_date(filtered).items()
        },
        "summary": urgency_summary(predictions),
        "customers": unique_customers(predictions),
        "due_soon": [p.asset_id for p in due_within(filtered, days)],
    }
