"""
Pytest Configuration for Tank Copilot Tests

IMPORTANT: environment variables must be set BEFORE any tank_copilot import,
since settings are read from the environment at import time.
"""

import os

# Set these BEFORE any other imports
os.environ.setdefault("MYSQL_HOST", "localhost")
os.environ.setdefault("MYSQL_DATABASE", "tank_copilot_test")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

# Import all fixtures
from tests.fixtures.api_fixtures import *  # noqa
from tests.fixtures.database_fixtures import *  # noqa
from tests.fixtures.reading_fixtures import *  # noqa


@pytest.fixture
def thresholds():
    """Default analytics thresholds (env defaults)"""
    from tank_copilot.settings import AnalyticsThresholds

    return AnalyticsThresholds()
