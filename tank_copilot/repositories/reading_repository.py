"""
Reading Repository - reading store access

Returns raw rows exactly as stored (agbot_db schema: reading_at,
level_percent, level_liters, is_online). Ordering and deduplication are left
to the ReadingNormalizer.
"""

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any, Dict, List

import pymysql
from pymysql import cursors

from tank_copilot.errors import ReadingStoreError

logger = logging.getLogger(__name__)


class ReadingRepository:
    """Repository for tank level readings."""

    def __init__(self, db_config: Dict[str, Any]):
        self.db_config = db_config
        logger.info(f"ReadingRepository initialized for DB: {db_config.get('database')}")

    def _get_connection(self):
        """Get database connection."""
        return pymysql.connect(**self.db_config, cursorclass=cursors.DictCursor)

    def fetch_readings(
        self, asset_id: str, from_ts: datetime, to_ts: datetime
    ) -> List[Dict[str, Any]]:
        """
        Fetch raw readings for one asset in [from_ts, to_ts].

        Raises:
            ReadingStoreError: the store could not be queried
        """
        try:
            conn = self._get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.execute(
                        """
                        SELECT
                            asset_id,
                            reading_at,
                            level_percent,
                            level_liters,
                            is_online
                        FROM tank_readings
                        WHERE asset_id = %s
                          AND reading_at BETWEEN %s AND %s
                        ORDER BY reading_at ASC
                        """,
                        (asset_id, from_ts, to_ts),
                    )
                    rows = cursor.fetchall()
                    logger.debug(f"Fetched {len(rows)} readings for asset {asset_id}")
                    return list(rows)
            finally:
                conn.close()
        except pymysql.MySQLError as e:
            logger.error(f"❌ Reading store query failed for asset {asset_id}: {e}")
            raise ReadingStoreError(
                f"Could not fetch readings for asset {asset_id}",
                details={"asset_id": asset_id, "error": str(e)},
            ) from e

    async def fetch_readings_async(
        self, asset_id: str, from_ts: datetime, to_ts: datetime
    ) -> List[Dict[str, Any]]:
        """Same as fetch_readings, run in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, partial(self.fetch_readings, asset_id, from_ts, to_ts)
        )
