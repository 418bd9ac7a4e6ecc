"""
Refill Calendar Orchestrator

Runs the per-asset prediction across a fleet (map), then groups and filters
the results for calendar and list views (fold). One asset failing, for any
reason, never fails the batch: it is reported as urgency "unknown",
confidence "low".

The grouping/filter helpers are pure functions over a prediction list.
"""

import asyncio
import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from tank_copilot.models.analytics_models import (
    URGENCY_ORDER,
    AssetMetadata,
    RefillPrediction,
    Urgency,
)
from tank_copilot.orchestrators.asset_analytics import AssetAnalyticsOrchestrator
from tank_copilot.repositories.asset_repository import AssetRepository

logger = logging.getLogger(__name__)


class RefillCalendarOrchestrator:
    """
    Fleet-scope refill predictions.

    Example Usage:
        calendar = RefillCalendarOrchestrator(analytics, asset_repo)
        predictions = calendar.build_fleet_predictions(customer_id="C-12")
        by_day = group_by_date(predictions)
    """

    def __init__(
        self,
        analytics: AssetAnalyticsOrchestrator,
        asset_repo: Optional[AssetRepository] = None,
    ):
        self.analytics = analytics
        self.asset_repo = asset_repo

    def _assets(
        self, assets: Optional[List[AssetMetadata]], customer_id: Optional[str]
    ) -> List[AssetMetadata]:
        if assets is not None:
            return list(assets)
        return self.asset_repo.list_assets(customer_id) if self.asset_repo else []

    def _predict_one(
        self, asset: AssetMetadata, rows: Any, now: Optional[datetime]
    ) -> RefillPrediction:
        try:
            return self.analytics.predict(asset, rows, now=now)
        except Exception as e:
            logger.warning(f"⚠️ Prediction failed for asset {asset.asset_id}: {e}")
            return RefillPrediction.unknown(asset, error=str(e))

    def build_fleet_predictions(
        self,
        assets: Optional[List[AssetMetadata]] = None,
        readings_by_asset: Optional[Dict[str, Any]] = None,
        customer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[RefillPrediction]:
        """
        One prediction per asset, in asset order.

        Args:
            assets: Assets to predict (default: asset repository listing)
            readings_by_asset: Pre-fetched raw rows per asset id; when omitted,
                rows are fetched from the reading store per asset
            customer_id: Scope for the repository listing
            now: Reference time
        """
        predictions = []
        for asset in self._assets(assets, customer_id):
            if readings_by_asset is not None:
                rows = readings_by_asset.get(asset.asset_id, [])
            else:
                try:
                    rows = self.analytics.fetch_raw(asset, now)
                except Exception as e:
                    logger.warning(f"⚠️ Reading fetch failed for asset {asset.asset_id}: {e}")
                    predictions.append(RefillPrediction.unknown(asset, error=str(e)))
                    continue
            predictions.append(self._predict_one(asset, rows, now))

        logger.info(
            f"Built {len(predictions)} refill predictions "
            f"({sum(1 for p in predictions if p.urgency == Urgency.UNKNOWN)} unknown)"
        )
        return predictions

    async def build_fleet_predictions_async(
        self,
        assets: Optional[List[AssetMetadata]] = None,
        customer_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[RefillPrediction]:
        """Concurrent fetch for every asset, then the same per-asset isolation."""
        loop = asyncio.get_running_loop()
        fleet = await loop.run_in_executor(None, self._assets, assets, customer_id)
        results = await asyncio.gather(
            *(self.analytics.fetch_raw_async(asset, now) for asset in fleet),
            return_exceptions=True,
        )
        predictions = []
        for asset, rows in zip(fleet, results):
            if isinstance(rows, Exception):
                logger.warning(f"⚠️ Reading fetch failed for asset {asset.asset_id}: {rows}")
                predictions.append(RefillPrediction.unknown(asset, error=str(rows)))
            else:
                predictions.append(self._predict_one(asset, rows, now))
        return predictions


# ═══════════════════════════════════════════════════════════════════════════════
# PURE HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


def group_by_date(predictions: Iterable[RefillPrediction]) -> Dict[Optional[str], List[RefillPrediction]]:
    """Calendar buckets keyed by ISO date; undated predictions under None (last)."""
    dated: Dict[str, List[RefillPrediction]] = {}
    undated: List[RefillPrediction] = []
    for prediction in predictions:
        if prediction.predicted_refill_date is None:
            undated.append(prediction)
        else:
            dated.setdefault(prediction.predicted_refill_date.isoformat(), []).append(prediction)

    grouped: Dict[Optional[str], List[RefillPrediction]] = OrderedDict(
        (key, dated[key]) for key in sorted(dated)
    )
    if undated:
        grouped[None] = undated
    return grouped


def group_by_urgency(predictions: Iterable[RefillPrediction]) -> Dict[str, List[RefillPrediction]]:
    grouped: Dict[str, List[RefillPrediction]] = OrderedDict(
        (urgency.value, []) for urgency in sorted(URGENCY_ORDER, key=URGENCY_ORDER.get)
    )
    for prediction in predictions:
        grouped[prediction.urgency.value].append(prediction)
    return grouped


def filter_predictions(
    predictions: Iterable[RefillPrediction],
    urgency: Optional[str] = None,
    customer_id: Optional[str] = None,
    search: Optional[str] = None,
) -> List[RefillPrediction]:
    """Filter by urgency, customer, and case-insensitive text over asset/customer names."""
    needle = search.strip().lower() if search else None
    result = []
    for prediction in predictions:
        if urgency and urgency != "all" and prediction.urgency.value != urgency:
            continue
        if customer_id and prediction.customer_id != customer_id:
            continue
        if needle:
            haystack = " ".join(
                filter(None, [prediction.asset_id, prediction.asset_name, prediction.customer_name])
            ).lower()
            if needle not in haystack:
                continue
        result.append(prediction)
    return result


def unique_customers(predictions: Iterable[RefillPrediction]) -> List[Dict[str, str]]:
    """Distinct customers sorted by name."""
    seen: Dict[str, str] = {}
    for prediction in predictions:
        if prediction.customer_id and prediction.customer_id not in seen:
            seen[prediction.customer_id] = prediction.customer_name or prediction.customer_id
    return [
        {"customer_id": cid, "customer_name": name}
        for cid, name in sorted(seen.items(), key=lambda item: item[1].lower())
    ]


def urgency_summary(predictions: Iterable[RefillPrediction]) -> Dict[str, int]:
    summary = {urgency.value: 0 for urgency in Urgency}
    total = 0
    for prediction in predictions:
        summary[prediction.urgency.value] += 1
        total += 1
    summary["total"] = total
    return summary


def sort_by_urgency(predictions: Iterable[RefillPrediction]) -> List[RefillPrediction]:
    """Most urgent first; within a tier, fewest days remaining first (unknown days last)."""
    return sorted(
        predictions,
        key=lambda p: (
            URGENCY_ORDER[p.urgency],
            p.days_remaining is None,
            p.days_remaining if p.days_remaining is not None else 0.0,
        ),
    )


def due_within(
    predictions: Iterable[RefillPrediction], days: int = 7, today: Optional[date] = None
) -> List[RefillPrediction]:
    """Predictions whose refill date falls within the next ``days`` days."""
    today = today or datetime.utcnow().date()
    horizon = today + timedelta(days=days)
    return [
        p
        for p in predictions
        if p.predicted_refill_date is not None and p.predicted_refill_date <= horizon
    ]
