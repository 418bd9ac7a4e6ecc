"""
Asset Repository - tank metadata (capacity, critical level, industry, customer)
"""

import logging
from typing import Any, Dict, List, Optional

import pymysql
from pymysql import cursors

from tank_copilot.errors import ReadingStoreError
from tank_copilot.models.analytics_models import AssetMetadata, ReadingSource

logger = logging.getLogger(__name__)

_ASSET_COLUMNS = """
    a.asset_id,
    a.name,
    a.customer_id,
    c.name AS customer_name,
    a.capacity_liters,
    a.critical_level_pct,
    COALESCE(c.industry, 'general') AS industry,
    a.reading_source
"""


class AssetRepository:
    """Repository for asset metadata."""

    def __init__(self, db_config: Dict[str, Any]):
        self.db_config = db_config
        logger.info(f"AssetRepository initialized for DB: {db_config.get('database')}")

    def _get_connection(self):
        """Get database connection."""
        return pymysql.connect(**self.db_config, cursorclass=cursors.DictCursor)

    @staticmethod
    def _to_asset(row: Dict[str, Any]) -> AssetMetadata:
        capacity = row.get("capacity_liters")
        critical = row.get("critical_level_pct")
        try:
            source = ReadingSource(row.get("reading_source") or "sensor")
        except ValueError:
            source = ReadingSource.SENSOR
        return AssetMetadata(
            asset_id=str(row["asset_id"]),
            name=row.get("name"),
            customer_id=str(row["customer_id"]) if row.get("customer_id") is not None else None,
            customer_name=row.get("customer_name"),
            capacity_liters=float(capacity) if capacity is not None else None,
            critical_level_pct=float(critical) if critical is not None else None,
            industry=row.get("industry") or "general",
            source=source,
        )

    def _query(self, sql: str, params: tuple) -> List[Dict[str, Any]]:
        try:
            conn = self._get_connection()
            try:
                with conn.cursor() as cursor:
                    cursor.execute(sql, params)
                    return list(cursor.fetchall())
            finally:
                conn.close()
        except pymysql.MySQLError as e:
            logger.error(f"❌ Asset query failed: {e}")
            raise ReadingStoreError(
                "Could not query asset metadata", details={"error": str(e)}
            ) from e

    def get_asset(self, asset_id: str) -> Optional[AssetMetadata]:
        """Get one asset, or None when it does not exist."""
        rows = self._query(
            f"""
            SELECT {_ASSET_COLUMNS}
            FROM tank_assets a
            LEFT JOIN customers c ON c.customer_id = a.customer_id
            WHERE a.asset_id = %s AND a.archived = 0
            """,
            (asset_id,),
        )
        return self._to_asset(rows[0]) if rows else None

    def list_assets(self, customer_id: Optional[str] = None) -> List[AssetMetadata]:
        """List active assets, optionally for one customer."""
        sql = f"""
            SELECT {_ASSET_COLUMNS}
            FROM tank_assets a
            LEFT JOIN customers c ON c.customer_id = a.customer_id
            WHERE a.archived = 0
        """
        params: tuple = ()
        if customer_id:
            sql += " AND a.customer_id = %s"
            params = (customer_id,)
        sql += " ORDER BY a.name"
        assets = [self._to_asset(row) for row in self._query(sql, params)]
        logger.debug(f"Listed {len(assets)} assets (customer={customer_id})")
        return assets
