"""
Reading Normalizer Service

Turns raw reading rows from any supported source schema into one canonical,
time-ordered, deduplicated Series.

Supported schemas (detected by key presence, first match wins):
- agbot       : telemetry history export (calibrated/raw fill %, reported litres)
- agbot_db    : telemetry rows as stored (level_percent, level_liters, reading_at)
- smartfill   : SmartFill tank updates (volume, volume_percent, update_time)
- dip         : manual dip entries (value in liters, created_at)
- canonical   : already-normalized rows or Reading objects

Author: Tank Copilot Team
Created: 2026-01-12
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

from tank_copilot.models.analytics_models import Reading, ReadingSource, Series

logger = structlog.get_logger()


_TRUE_STRINGS = ("true", "1", "yes", "y", "online", "on")
_FALSE_STRINGS = ("false", "0", "no", "n", "offline", "off")


def coerce_number(value: Any) -> Optional[float]:
    """Coerce numbers and numeric strings to float; anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if text.endswith("%"):
            text = text[:-1]
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    # NaN / inf are unusable levels
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def coerce_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    return default


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a timestamp into a naive UTC datetime.

    Accepts datetime objects, ISO-8601 strings (with or without 'Z') and
    epoch seconds/milliseconds.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        seconds = value / 1000.0 if value > 1e12 else value
        try:
            parsed = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE SCHEMA ADAPTERS
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SchemaAdapter:
    """Maps one raw schema onto the canonical Reading fields."""

    name: str
    detect_keys: Tuple[str, ...]
    timestamp_keys: Tuple[str, ...]
    percent_keys: Tuple[str, ...]
    liters_keys: Tuple[str, ...]
    online_keys: Tuple[str, ...]
    source: ReadingSource

    def matches(self, row: Dict[str, Any]) -> bool:
        return any(key in row for key in self.detect_keys)

    def adapt(self, row: Dict[str, Any]) -> Optional[Reading]:
        timestamp = coerce_timestamp(_first_present(row, self.timestamp_keys))
        if timestamp is None:
            return None

        percent = coerce_number(_first_present(row, self.percent_keys))
        liters = coerce_number(_first_present(row, self.liters_keys))
        if percent is None and liters is None:
            return None

        online_raw = _first_present(row, self.online_keys)
        source = self.source
        if "source" in row:
            try:
                source = ReadingSource(str(row["source"]).lower())
            except ValueError:
                pass

        return Reading(
            timestamp=timestamp,
            level_percent=percent,
            level_liters=liters,
            device_online=coerce_bool(online_raw, default=True),
            source=source,
        )


def _first_present(row: Dict[str, Any], keys: Iterable[str]) -> Any:
    """First non-None value among keys (so raw % can back up calibrated %)."""
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


ADAPTERS: List[SchemaAdapter] = [
    SchemaAdapter(
        name="agbot",
        detect_keys=("calibrated_fill_percentage", "raw_fill_percentage", "reading_timestamp"),
        timestamp_keys=("reading_timestamp",),
        percent_keys=("calibrated_fill_percentage", "raw_fill_percentage"),
        liters_keys=("asset_reported_litres",),
        online_keys=("device_online",),
        source=ReadingSource.SENSOR,
    ),
    SchemaAdapter(
        name="agbot_db",
        detect_keys=("reading_at",),
        timestamp_keys=("reading_at",),
        percent_keys=("level_percent",),
        liters_keys=("level_liters",),
        online_keys=("is_online",),
        source=ReadingSource.SENSOR,
    ),
    SchemaAdapter(
        name="smartfill",
        detect_keys=("update_time", "volume_percent"),
        timestamp_keys=("update_time",),
        percent_keys=("volume_percent",),
        liters_keys=("volume",),
        online_keys=("online", "is_online"),
        source=ReadingSource.SENSOR,
    ),
    SchemaAdapter(
        name="dip",
        detect_keys=("created_at",),
        timestamp_keys=("created_at",),
        percent_keys=("percent",),
        liters_keys=("value",),
        online_keys=(),
        source=ReadingSource.MANUAL,
    ),
    SchemaAdapter(
        name="canonical",
        detect_keys=("timestamp",),
        timestamp_keys=("timestamp",),
        percent_keys=("level_percent", "levelPercent"),
        liters_keys=("level_liters", "levelLiters"),
        online_keys=("device_online", "deviceOnline"),
        source=ReadingSource.SENSOR,
    ),
]


# ═══════════════════════════════════════════════════════════════════════════════
# NORMALIZER
# ═══════════════════════════════════════════════════════════════════════════════


class ReadingNormalizer:
    """
    Converts heterogeneous raw rows into a canonical Series.

    Contract:
    - numeric strings become numbers, unparsable values become None
    - rows without a usable level (or timestamp) are dropped
    - output is sorted ascending by timestamp
    - exact-timestamp collisions keep the last-seen row
    - timestamps are naive UTC, including those of Reading objects
    - with capacity known, unreliable percent (mostly zero) is derived from liters
    - input that is not a list/tuple/Series yields an empty Series

    Normalizing an already-normalized Series returns an equal Series.

    Example Usage:
        normalizer = ReadingNormalizer()
        series = normalizer.normalize(rows, asset_id="TANK-01", capacity_liters=5000)
    """

    def __init__(self, adapters: Optional[List[SchemaAdapter]] = None):
        self.adapters = adapters or ADAPTERS

    def normalize(
        self,
        raw_rows: Any,
        asset_id: Optional[str] = None,
        capacity_liters: Optional[float] = None,
    ) -> Series:
        """
        Normalize raw rows into a Series.

        Args:
            raw_rows: list of dicts (any supported schema), Readings, or a Series
            asset_id: Asset the readings belong to
            capacity_liters: When known, fills the missing side of percent/liters

        Returns:
            Series (possibly empty)
        """
        if isinstance(raw_rows, Series):
            asset_id = asset_id or raw_rows.asset_id
            rows = list(raw_rows.readings)
        elif isinstance(raw_rows, (list, tuple)):
            rows = list(raw_rows)
        else:
            logger.debug(
                "Readings input is not a list, returning empty series",
                asset_id=asset_id,
                input_type=type(raw_rows).__name__,
            )
            return Series((), asset_id)

        by_timestamp: Dict[datetime, Reading] = {}
        dropped = 0
        for row in rows:
            reading = self._to_reading(row)
            if reading is None:
                dropped += 1
                continue
            reading = self._fill_levels(reading, capacity_liters)
            # later rows overwrite earlier ones with the same timestamp
            by_timestamp[reading.timestamp] = reading

        readings = tuple(sorted(by_timestamp.values(), key=lambda r: r.timestamp))
        if (
            capacity_liters
            and capacity_liters > 0
            and not Series(readings).is_percent_reliable()
        ):
            derived = self._percent_from_liters(readings, capacity_liters)
            if derived != readings:
                logger.info(
                    "Percent readings unreliable, derived percent from liters",
                    asset_id=asset_id,
                    readings=len(derived),
                )
            readings = derived

        if dropped:
            logger.debug(
                "Dropped unusable reading rows",
                asset_id=asset_id,
                dropped=dropped,
                kept=len(readings),
            )
        return Series(readings, asset_id)

    def _to_reading(self, row: Any) -> Optional[Reading]:
        if isinstance(row, Reading):
            if row.level_percent is None and row.level_liters is None:
                return None
            timestamp = coerce_timestamp(row.timestamp)
            if timestamp is None:
                return None
            if timestamp != row.timestamp:
                return replace(row, timestamp=timestamp)
            return row
        if not isinstance(row, dict):
            return None
        adapter = self._detect(row)
        if adapter is None:
            return None
        return adapter.adapt(row)

    def _detect(self, row: Dict[str, Any]) -> Optional[SchemaAdapter]:
        for adapter in self.adapters:
            if adapter.matches(row):
                return adapter
        return None

    @staticmethod
    def _percent_from_liters(
        readings: Tuple[Reading, ...], capacity_liters: float
    ) -> Tuple[Reading, ...]:
        """Replace percent with liters / capacity wherever liters are known."""
        return tuple(
            replace(r, level_percent=r.level_liters / capacity_liters * 100.0)
            if r.level_liters is not None
            else r
            for r in readings
        )

    @staticmethod
    def _fill_levels(reading: Reading, capacity_liters: Optional[float]) -> Reading:
        if not capacity_liters or capacity_liters <= 0:
            return reading
        if reading.level_percent is None and reading.level_liters is not None:
            return Reading(
                timestamp=reading.timestamp,
                level_percent=reading.level_liters / capacity_liters * 100.0,
                level_liters=reading.level_liters,
                device_online=reading.device_online,
                source=reading.source,
            )
        if reading.level_liters is None and reading.level_percent is not None:
            return Reading(
                timestamp=reading.timestamp,
                level_percent=reading.level_percent,
                level_liters=reading.level_percent / 100.0 * capacity_liters,
                device_online=reading.device_online,
                source=reading.source,
            )
        return reading
