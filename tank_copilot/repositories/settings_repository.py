"""
Settings Repository - per-customer delivery settings

Customers without a settings row get the configured defaults.
"""

import logging
from typing import Any, Dict, Optional

import pymysql
from pymysql import cursors

from tank_copilot.errors import ReadingStoreError
from tank_copilot.models.analytics_models import CustomerDeliverySettings
from tank_copilot.settings import DeliverySettings

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Repository for customer delivery settings."""

    def __init__(
        self, db_config: Dict[str, Any], defaults: Optional[DeliverySettings] = None
    ):
        self.db_config = db_config
        self.defaults = defaults or DeliverySettings()

    def _get_connection(self):
        """Get database connection."""
        return pymysql.connect(**self.db_config, cursorclass=cursors.DictCursor)

    def default_settings(self) -> CustomerDeliverySettings:
        return CustomerDeliverySettings(
            lead_time_days=self.defaults.lead_time_days,
            target_level_pct=self.defaults.target_level_pct,
            spike_threshold_multiplier=self.defaults.spike_threshold_multiplier,
        )

    def get_delivery_settings(self, customer_id: Optional[str]) -> CustomerDeliverySettings:
        """Settings for a customer, falling back to defaults field by field."""
        if not customer_id:
            return self.default_settings()

        try:
            conn = self._get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.execute(
                        """
                        SELECT lead_time_days, target_level_pct, spike_threshold_multiplier
                        FROM customer_delivery_settings
                        WHERE customer_id = %s
                        """,
                        (customer_id,),
                    )
                    row = cursor.fetchone()
            finally:
                conn.close()
        except pymysql.MySQLError as e:
            logger.error(f"❌ Delivery settings query failed for {customer_id}: {e}")
            raise ReadingStoreError(
                "Could not load delivery settings",
                details={"customer_id": customer_id, "error": str(e)},
            ) from e

        defaults = self.default_settings()
        if not row:
            return defaults
        return CustomerDeliverySettings(
            lead_time_days=_or_default(row.get("lead_time_days"), defaults.lead_time_days),
            target_level_pct=_or_default(row.get("target_level_pct"), defaults.target_level_pct),
            spike_threshold_multiplier=_or_default(
                row.get("spike_threshold_multiplier"), defaults.spike_threshold_multiplier
            ),
        )


def _or_default(value: Any, default: float) -> float:
    return float(value) if value is not None else default
