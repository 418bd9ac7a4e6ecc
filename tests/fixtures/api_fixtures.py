"""
API fixtures for testing
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def mock_architecture():
    """Architecture dict with mocked orchestrators"""
    analytics = MagicMock()
    analytics.analyze_asset_async = AsyncMock()
    calendar = MagicMock()
    calendar.build_fleet_predictions_async = AsyncMock(return_value=[])
    return {
        "repositories": {},
        "services": {},
        "orchestrators": {"analytics": analytics, "calendar": calendar},
    }


@pytest.fixture
def test_client(mock_architecture):
    """Test client with the architecture dependency overridden"""
    from tank_copilot.main import app
    from tank_copilot.routers.analytics_router import get_architecture

    app.dependency_overrides[get_architecture] = lambda: mock_architecture
    yield TestClient(app)
    app.dependency_overrides.clear()
