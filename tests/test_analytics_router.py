"""
Tests for Tank Analytics Router endpoints
"""

from datetime import datetime, timedelta
from unittest.mock import MagicMock

from tank_copilot.errors import AssetNotFoundError, MissingCapacityError, ReadingStoreError
from tank_copilot.models.analytics_models import (
    Confidence,
    DeliveryRecommendation,
    RefillPrediction,
    Urgency,
)


def _prediction(asset_id, urgency, days, customer_id, customer_name):
    refill_date = None
    if days is not None:
        refill_date = datetime.utcnow().date() + timedelta(days=int(days))
    return RefillPrediction(
        asset_id=asset_id,
        current_level_pct=40.0,
        daily_consumption=2.0,
        days_remaining=days,
        predicted_refill_date=refill_date,
        urgency=urgency,
        confidence=Confidence.MEDIUM,
        asset_name=f"Tank {asset_id}",
        customer_id=customer_id,
        customer_name=customer_name,
    )


class TestAssetEndpoints:
    """Test per-asset endpoints"""

    def test_analytics(self, test_client, mock_architecture):
        result = MagicMock()
        result.to_dict.return_value = {"asset": {"asset_id": "TANK-01"}, "summary": {}}
        analytics = mock_architecture["orchestrators"]["analytics"]
        analytics.analyze_asset_async.return_value = result

        response = test_client.get("/tankAnalytics/api/assets/TANK-01/analytics?extra_buffer_days=2")

        assert response.status_code == 200
        assert response.json()["asset"]["asset_id"] == "TANK-01"
        analytics.analyze_asset_async.assert_awaited_once_with("TANK-01", extra_buffer_days=2.0)

    def test_refill_prediction(self, test_client, mock_architecture):
        result = MagicMock()
        result.prediction = _prediction("TANK-01", Urgency.WARNING, 5.0, "C-1", "Acme")
        mock_architecture["orchestrators"]["analytics"].analyze_asset_async.return_value = result

        response = test_client.get("/tankAnalytics/api/assets/TANK-01/refill-prediction")

        assert response.status_code == 200
        data = response.json()
        assert data["urgency"] == "warning"
        assert data["days_remaining"] == 5.0

    def test_unknown_asset_returns_404(self, test_client, mock_architecture):
        analytics = mock_architecture["orchestrators"]["analytics"]
        analytics.analyze_asset_async.side_effect = AssetNotFoundError("NOPE")

        response = test_client.get("/tankAnalytics/api/assets/NOPE/analytics")

        assert response.status_code == 404
        assert response.json()["category"] == "not_found"

    def test_delivery_recommendation(self, test_client, mock_architecture):
        analytics = mock_architecture["orchestrators"]["analytics"]
        analytics.recommend_delivery.return_value = DeliveryRecommendation(
            urgency=Urgency.NORMAL,
            recommended_order_date=datetime(2026, 2, 1).date(),
            recommended_volume=5000.0,
            operation_type=None,
            buffer_days=9.0,
            days_to_critical=12.0,
            reasoning="Order in 9 days",
        )

        response = test_client.get("/tankAnalytics/api/assets/TANK-01/delivery-recommendation")

        assert response.status_code == 200
        assert response.json()["recommended_order_date"] == "2026-02-01"
        analytics.recommend_delivery.assert_called_once_with("TANK-01", extra_buffer_days=0.0)

    def test_missing_capacity_returns_422(self, test_client, mock_architecture):
        analytics = mock_architecture["orchestrators"]["analytics"]
        analytics.recommend_delivery.side_effect = MissingCapacityError("delivery volume", asset_id="TANK-09")

        response = test_client.get("/tankAnalytics/api/assets/TANK-09/delivery-recommendation")

        assert response.status_code == 422
        body = response.json()
        assert body["error"] is True
        assert body["details"]["asset_id"] == "TANK-09"

    def test_store_down_returns_503(self, test_client, mock_architecture):
        analytics = mock_architecture["orchestrators"]["analytics"]
        analytics.analyze_asset_async.side_effect = ReadingStoreError("down")

        response = test_client.get("/tankAnalytics/api/assets/TANK-01/analytics")

        assert response.status_code == 503
        assert response.json()["category"] == "database"


class TestRefillCalendarEndpoint:
    """Test fleet calendar endpoint"""

    def _set_predictions(self, mock_architecture):
        predictions = [
            _prediction("A1", Urgency.NORMAL, 20.0, "C-2", "Zeta Farms"),
            _prediction("A2", Urgency.CRITICAL, 1.0, "C-1", "Acme Mining"),
            _prediction("A3", Urgency.UNKNOWN, None, "C-1", "Acme Mining"),
            _prediction("A4", Urgency.WARNING, 5.0, "C-2", "Zeta Farms"),
        ]
        mock_architecture["orchestrators"]["calendar"].build_fleet_predictions_async.return_value = predictions
        return predictions

    def test_calendar(self, test_client, mock_architecture):
        self._set_predictions(mock_architecture)

        response = test_client.get("/tankAnalytics/api/fleet/refill-calendar")

        assert response.status_code == 200
        data = response.json()
        assert [p["asset_id"] for p in data["predictions"]] == ["A2", "A4", "A1", "A3"]
        assert list(data["calendar"])[-1] == "unscheduled"
        assert data["calendar"]["unscheduled"] == ["A3"]
        assert data["summary"]["total"] == 4
        assert data["summary"]["critical"] == 1
        assert [c["customer_name"] for c in data["customers"]] == ["Acme Mining", "Zeta Farms"]
        assert data["due_soon"] == ["A2", "A4"]

    def test_calendar_filters(self, test_client, mock_architecture):
        self._set_predictions(mock_architecture)

        response = test_client.get(
            "/tankAnalytics/api/fleet/refill-calendar",
            params={"customer_id": "C-2", "urgency": "warning", "search": "zeta"},
        )

        assert response.status_code == 200
        data = response.json()
        assert [p["asset_id"] for p in data["predictions"]] == ["A4"]
        # summary covers the unfiltered fleet
        assert data["summary"]["total"] == 4
        mock_architecture["orchestrators"]["calendar"].build_fleet_predictions_async.assert_awaited_once_with(
            customer_id="C-2"
        )

    def test_invalid_days_rejected(self, test_client):
        response = test_client.get("/tankAnalytics/api/fleet/refill-calendar?days=0")
        assert response.status_code == 422
