"""Repository layer for data access."""

from .asset_repository import AssetRepository
from .reading_repository import ReadingRepository
from .settings_repository import SettingsRepository

__all__ = [
    "AssetRepository",
    "ReadingRepository",
    "SettingsRepository",
]
