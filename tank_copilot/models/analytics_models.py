"""
Tank Analytics Data Models
==========================

Enums and dataclasses shared by the consumption analytics pipeline.
Every entity is created per request and discarded; none is a system of
record. All of them serialize through ``to_dict()``.

Author: Tank Copilot Team
Version: 1.0.0
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


# ══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════════════════════


class ReadingSource(str, Enum):
    """Where a level reading came from"""
    SENSOR = "sensor"
    MANUAL = "manual"
    ESTIMATE = "estimate"


class LevelUnit(str, Enum):
    """Unit a level (and any delta derived from it) is expressed in"""
    PERCENT = "percent"
    LITERS = "liters"


class IntervalClass(str, Enum):
    """Classification of the interval between two adjacent readings"""
    CONSUMPTION = "consumption"
    REFILL = "refill"
    NOISE = "noise"


class Trend(str, Enum):
    """Week-over-week consumption trend"""
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


class AnomalySeverity(str, Enum):
    NONE = "none"
    MODERATE = "moderate"
    SEVERE = "severe"


class Urgency(str, Enum):
    """How soon an asset needs attention"""
    CRITICAL = "critical"
    WARNING = "warning"
    NORMAL = "normal"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ProjectionStatus(str, Enum):
    """Why a critical-level projection does or does not carry a number"""
    PROJECTED = "projected"
    AT_OR_BELOW_CRITICAL = "at_or_below_critical"
    NO_CONSUMPTION = "no_consumption"


URGENCY_ORDER = {
    Urgency.CRITICAL: 0,
    Urgency.WARNING: 1,
    Urgency.NORMAL: 2,
    Urgency.UNKNOWN: 3,
}

# Percent is trusted only when at least this share of readings is non-zero
PERCENT_RELIABLE_SHARE = 0.5


def _round(value: Optional[float], digits: int = 2) -> Optional[float]:
    return round(value, digits) if value is not None else None


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


# ══════════════════════════════════════════════════════════════════════════════
# READINGS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Reading:
    """One canonical level reading."""
    timestamp: datetime
    level_percent: Optional[float] = None
    level_liters: Optional[float] = None
    device_online: bool = True
    source: ReadingSource = ReadingSource.SENSOR

    def level(self, unit: LevelUnit) -> Optional[float]:
        if unit == LevelUnit.PERCENT:
            return self.level_percent
        return self.level_liters

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level_percent": _round(self.level_percent),
            "level_liters": _round(self.level_liters),
            "device_online": self.device_online,
            "source": self.source.value,
        }


@dataclass(frozen=True)
class Series:
    """
    Ordered, immutable readings for one asset.

    Timestamps are strictly increasing once produced by the normalizer.
    """
    readings: Tuple[Reading, ...] = ()
    asset_id: Optional[str] = None

    def __len__(self) -> int:
        return len(self.readings)

    def __iter__(self):
        return iter(self.readings)

    def __getitem__(self, index):
        return self.readings[index]

    @property
    def is_empty(self) -> bool:
        return not self.readings

    @property
    def first(self) -> Optional[Reading]:
        return self.readings[0] if self.readings else None

    @property
    def last(self) -> Optional[Reading]:
        return self.readings[-1] if self.readings else None

    def is_percent_reliable(self) -> bool:
        """
        At least half of the readings carry a non-zero percent.

        Uncalibrated telemetry reports 0% while the litre value is real.
        """
        if not self.readings:
            return False
        non_zero = sum(1 for r in self.readings if r.level_percent)
        return non_zero >= len(self.readings) * PERCENT_RELIABLE_SHARE

    def preferred_unit(self) -> LevelUnit:
        """
        Percent when it is reliable, liters when percent is not and liters
        exist, percent otherwise (a genuinely empty tank still reads 0%).
        """
        if self.is_percent_reliable():
            return LevelUnit.PERCENT
        if any(r.level_liters is not None for r in self.readings):
            return LevelUnit.LITERS
        return LevelUnit.PERCENT

    def online_only(self) -> "Series":
        return Series(
            tuple(r for r in self.readings if r.device_online), self.asset_id
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "readings": [r.to_dict() for r in self.readings],
        }


@dataclass
class ConsumptionInterval:
    """Derived interval between two adjacent readings (never persisted)."""
    start_ts: datetime
    end_ts: datetime
    duration_days: float
    delta_level: float  # previous - current, positive = consumption
    classification: IntervalClass
    unit: LevelUnit = LevelUnit.PERCENT
    start_level: Optional[float] = None
    end_level: Optional[float] = None
    online: bool = True

    @property
    def daily_rate(self) -> float:
        if self.duration_days <= 0:
            return 0.0
        return self.delta_level / self.duration_days

    @property
    def is_consumption(self) -> bool:
        return self.classification == IntervalClass.CONSUMPTION

    @property
    def is_refill(self) -> bool:
        return self.classification == IntervalClass.REFILL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_ts": self.start_ts.isoformat(),
            "end_ts": self.end_ts.isoformat(),
            "duration_days": round(self.duration_days, 3),
            "delta_level": round(self.delta_level, 2),
            "daily_rate": round(self.daily_rate, 2),
            "classification": self.classification.value,
            "unit": self.unit.value,
        }


# ══════════════════════════════════════════════════════════════════════════════
# DERIVED ANALYTICS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class Baseline:
    """Long-horizon consumption profile, recomputed on every request."""
    mean_daily_rate: float
    stddev_daily_rate: float
    sample_count: int
    window_days: float
    unit: LevelUnit = LevelUnit.PERCENT
    mean_daily_liters: Optional[float] = None
    stddev_daily_liters: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean_daily_rate": round(self.mean_daily_rate, 2),
            "stddev_daily_rate": round(self.stddev_daily_rate, 2),
            "sample_count": self.sample_count,
            "window_days": self.window_days,
            "unit": self.unit.value,
            "mean_daily_liters": _round(self.mean_daily_liters),
            "stddev_daily_liters": _round(self.stddev_daily_liters),
        }


@dataclass
class AnomalyResult:
    is_anomalous: bool
    severity: AnomalySeverity
    ratio_to_baseline: Optional[float]
    threshold_used: float
    observed_daily_rate: Optional[float] = None
    baseline_mean: Optional[float] = None
    unusual_consumption: bool = False
    potential_leak: bool = False
    low_consumption: bool = False
    recommendation: Optional[str] = None
    possible_causes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_anomalous": self.is_anomalous,
            "severity": self.severity.value,
            "ratio_to_baseline": _round(self.ratio_to_baseline),
            "threshold_used": self.threshold_used,
            "observed_daily_rate": _round(self.observed_daily_rate),
            "baseline_mean": _round(self.baseline_mean),
            "unusual_consumption": self.unusual_consumption,
            "potential_leak": self.potential_leak,
            "low_consumption": self.low_consumption,
            "recommendation": self.recommendation,
            "possible_causes": list(self.possible_causes),
        }


@dataclass
class CriticalLevelProjection:
    """
    Three-valued days-to-critical result.

    ``days_remaining`` is None both when consumption is not discernible and
    when the level is already at/below critical; ``status`` tells which.
    """
    days_remaining: Optional[float]
    predicted_date: Optional[datetime]
    status: ProjectionStatus

    @property
    def is_projected(self) -> bool:
        return self.status == ProjectionStatus.PROJECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days_remaining": self.days_remaining,
            "predicted_date": _iso(self.predicted_date),
            "status": self.status.value,
        }


@dataclass
class ReliabilityReport:
    score: float  # 0-100
    uptime_pct: float
    gap_count: int
    largest_gap_hours: float
    readings_per_day: float
    sample_count: int
    is_sparse: bool
    latest_online: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": round(self.score, 1),
            "uptime_pct": round(self.uptime_pct, 1),
            "gap_count": self.gap_count,
            "largest_gap_hours": round(self.largest_gap_hours, 1),
            "readings_per_day": round(self.readings_per_day, 2),
            "sample_count": self.sample_count,
            "is_sparse": self.is_sparse,
            "latest_online": self.latest_online,
        }


@dataclass
class RefillEvent:
    timestamp: datetime
    amount: float
    unit: LevelUnit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "amount": round(self.amount, 2),
            "unit": self.unit.value,
        }


@dataclass
class RefillPattern:
    last_refill_date: Optional[datetime]
    average_days_between_refills: Optional[float]
    refill_count: int
    events: List[RefillEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_refill_date": _iso(self.last_refill_date),
            "average_days_between_refills": _round(self.average_days_between_refills, 1),
            "refill_count": self.refill_count,
            "events": [e.to_dict() for e in self.events],
        }


# ══════════════════════════════════════════════════════════════════════════════
# COLLABORATOR INPUTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class AssetMetadata:
    """Asset facts supplied by the metadata store."""
    asset_id: str
    name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    capacity_liters: Optional[float] = None
    critical_level_pct: Optional[float] = None
    industry: str = "general"
    source: ReadingSource = ReadingSource.SENSOR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "name": self.name,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "capacity_liters": self.capacity_liters,
            "critical_level_pct": self.critical_level_pct,
            "industry": self.industry,
            "source": self.source.value,
        }


@dataclass
class OperationWindow:
    """Predicted operation (harvest, blasting campaign...) that changes burn rate."""
    operation_type: str
    start: datetime
    end: datetime
    fuel_impact_multiplier: float


@dataclass
class CustomerDeliverySettings:
    lead_time_days: float = 3.0
    target_level_pct: float = 70.0
    spike_threshold_multiplier: float = 2.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lead_time_days": self.lead_time_days,
            "target_level_pct": self.target_level_pct,
            "spike_threshold_multiplier": self.spike_threshold_multiplier,
        }


# ══════════════════════════════════════════════════════════════════════════════
# OUTPUTS
# ══════════════════════════════════════════════════════════════════════════════


@dataclass
class RefillPrediction:
    asset_id: str
    current_level_pct: Optional[float]
    daily_consumption: Optional[float]
    days_remaining: Optional[float]
    predicted_refill_date: Optional[date]
    urgency: Urgency
    confidence: Confidence
    asset_name: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    reliability_score: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def unknown(
        cls, asset: AssetMetadata, error: Optional[str] = None
    ) -> "RefillPrediction":
        """Placeholder entry for an asset whose prediction could not be made."""
        return cls(
            asset_id=asset.asset_id,
            current_level_pct=None,
            daily_consumption=None,
            days_remaining=None,
            predicted_refill_date=None,
            urgency=Urgency.UNKNOWN,
            confidence=Confidence.LOW,
            asset_name=asset.name,
            customer_id=asset.customer_id,
            customer_name=asset.customer_name,
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "asset_name": self.asset_name,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "current_level_pct": _round(self.current_level_pct, 1),
            "daily_consumption": _round(self.daily_consumption),
            "days_remaining": self.days_remaining,
            "predicted_refill_date": _iso(self.predicted_refill_date),
            "urgency": self.urgency.value,
            "confidence": self.confidence.value,
            "reliability_score": _round(self.reliability_score, 1),
            "error": self.error,
        }


@dataclass
class DeliveryRecommendation:
    urgency: Urgency
    recommended_order_date: Optional[date]
    recommended_volume: Optional[float]  # liters
    operation_type: Optional[str]
    buffer_days: Optional[float]
    days_to_critical: Optional[float] = None
    reasoning: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "urgency": self.urgency.value,
            "recommended_order_date": _iso(self.recommended_order_date),
            "recommended_volume": _round(self.recommended_volume, 0),
            "operation_type": self.operation_type,
            "buffer_days": _round(self.buffer_days, 1),
            "days_to_critical": _round(self.days_to_critical, 1),
            "reasoning": self.reasoning,
        }


@dataclass
class AnalyticsSummary:
    """Everything the dashboard shows for one asset."""
    asset_id: str
    unit: LevelUnit
    rolling_average: float
    previous_day_usage: float
    trend: Trend
    consumption_velocity: float
    days_to_critical: Optional[float]
    predicted_refill_date: Optional[datetime]
    projection_status: ProjectionStatus
    anomaly: AnomalyResult
    reliability: ReliabilityReport
    refill_pattern: RefillPattern
    weekly_pattern: Dict[str, float]
    baseline: Optional[Baseline] = None
    last_reading: Optional[Reading] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "unit": self.unit.value,
            "rolling_average": round(self.rolling_average, 2),
            "previous_day_usage": round(self.previous_day_usage, 2),
            "trend": self.trend.value,
            "consumption_velocity": round(self.consumption_velocity, 2),
            "days_to_critical": self.days_to_critical,
            "predicted_refill_date": _iso(self.predicted_refill_date),
            "projection_status": self.projection_status.value,
            "anomaly": self.anomaly.to_dict(),
            "reliability": self.reliability.to_dict(),
            "refill_pattern": self.refill_pattern.to_dict(),
            "weekly_pattern": {k: round(v, 2) for k, v in self.weekly_pattern.items()},
            "baseline": self.baseline.to_dict() if self.baseline else None,
            "last_reading": self.last_reading.to_dict() if self.last_reading else None,
        }
