"""
Tank Copilot Settings v1.0.0
Centralized configuration from environment variables

Every threshold used by the consumption analytics pipeline lives here as a
named value with a documented default. Components receive these objects by
injection instead of repeating literals inline.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from dotenv import load_dotenv

from tank_copilot.errors import MissingCapacityError
from tank_copilot.models.analytics_models import LevelUnit

# Load environment variables
load_dotenv()


def _get_env(key: str, default: str = "", required: bool = False) -> str:
    """Get environment variable with optional requirement enforcement."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set!")
    return value


def _get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.getenv(key, str(default)))


def _get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.getenv(key, str(default)))


def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# =============================================================================
# DATABASE SETTINGS
# =============================================================================
@dataclass
class DatabaseSettings:
    """MySQL reading store configuration - ALL from environment."""

    host: str = field(default_factory=lambda: _get_env("MYSQL_HOST", "localhost"))
    port: int = field(default_factory=lambda: _get_env_int("MYSQL_PORT", 3306))
    user: str = field(default_factory=lambda: _get_env("MYSQL_USER", "tank_admin"))
    password: str = field(default_factory=lambda: _get_env("MYSQL_PASSWORD", ""))
    database: str = field(
        default_factory=lambda: _get_env("MYSQL_DATABASE", "tank_copilot")
    )
    charset: str = "utf8mb4"
    connect_timeout: int = field(
        default_factory=lambda: _get_env_int("MYSQL_CONNECT_TIMEOUT", 10)
    )

    def to_pymysql_config(self) -> Dict:
        """Return connection kwargs for pymysql.connect."""
        return {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "database": self.database,
            "charset": self.charset,
            "connect_timeout": self.connect_timeout,
        }


# =============================================================================
# REFILL THRESHOLD PRESETS
# =============================================================================
@dataclass(frozen=True)
class RefillThreshold:
    """
    Minimum level rise that counts as a refill.

    Historically this was a fixed percent in some places and a fixed liter
    amount in others. Both interpretations are kept as presets; conversion
    between them is capacity-aware.
    """

    value: float
    unit: LevelUnit = LevelUnit.PERCENT

    def in_unit(self, unit: LevelUnit, capacity_liters: Optional[float] = None) -> float:
        """
        Express this threshold in the given unit.

        Raises:
            MissingCapacityError: units differ and capacity is unknown
        """
        if unit == self.unit:
            return self.value
        if not capacity_liters or capacity_liters <= 0:
            raise MissingCapacityError(
                "refill threshold conversion",
                details={"threshold": self.value, "from": self.unit.value, "to": unit.value},
            )
        if unit == LevelUnit.PERCENT:
            return self.value / capacity_liters * 100.0
        return self.value / 100.0 * capacity_liters


REFILL_THRESHOLD_PRESETS: Dict[str, RefillThreshold] = {
    # Dashboard analytics: 10 percentage point jump
    "percent": RefillThreshold(10.0, LevelUnit.PERCENT),
    # Manual dip refill view
    "liters_dip": RefillThreshold(1000.0, LevelUnit.LITERS),
    # Telemetry refill trigger
    "liters_smartfill": RefillThreshold(50.0, LevelUnit.LITERS),
}


def get_refill_threshold(preset: str) -> RefillThreshold:
    """Look up a named refill threshold preset (falls back to percent)."""
    return REFILL_THRESHOLD_PRESETS.get(preset.lower(), REFILL_THRESHOLD_PRESETS["percent"])


# =============================================================================
# INDUSTRY PROFILES
# =============================================================================
@dataclass(frozen=True)
class IndustryProfile:
    """Per-industry tolerance for consumption variance."""

    name: str
    anomaly_multiplier: float
    severe_multiplier: float
    operation_windows_enabled: bool = False


INDUSTRY_PROFILES: Dict[str, IndustryProfile] = {
    "general": IndustryProfile("general", 2.0, 3.0, False),
    "farming": IndustryProfile("farming", 2.5, 3.5, True),
    "mining": IndustryProfile("mining", 1.8, 2.7, True),
}


def get_industry_profile(industry: Optional[str]) -> IndustryProfile:
    """Resolve an industry label to its profile; unknown labels get 'general'."""
    if not industry:
        return INDUSTRY_PROFILES["general"]
    return INDUSTRY_PROFILES.get(industry.strip().lower(), INDUSTRY_PROFILES["general"])


# =============================================================================
# ANALYTICS THRESHOLDS
# =============================================================================
@dataclass
class AnalyticsThresholds:
    """Consumption analytics configuration."""

    # Refill detection
    refill_threshold_preset: str = field(
        default_factory=lambda: _get_env("REFILL_THRESHOLD_PRESET", "percent")
    )
    max_interval_days: float = field(
        default_factory=lambda: _get_env_float("MAX_INTERVAL_DAYS", 7.0)
    )

    # Rolling average / trend
    rolling_window_days: float = field(
        default_factory=lambda: _get_env_float("ROLLING_WINDOW_DAYS", 7.0)
    )
    trend_window_days: float = field(
        default_factory=lambda: _get_env_float("TREND_WINDOW_DAYS", 7.0)
    )
    trend_change_ratio: float = field(
        default_factory=lambda: _get_env_float("TREND_CHANGE_RATIO", 0.15)
    )
    min_trend_points: int = field(
        default_factory=lambda: _get_env_int("MIN_TREND_POINTS", 3)
    )

    # Baseline
    baseline_window_days: float = field(
        default_factory=lambda: _get_env_float("BASELINE_WINDOW_DAYS", 90.0)
    )
    min_baseline_samples: int = field(
        default_factory=lambda: _get_env_int("MIN_BASELINE_SAMPLES", 7)
    )

    # Anomaly
    anomaly_window_days: float = field(
        default_factory=lambda: _get_env_float("ANOMALY_WINDOW_DAYS", 3.0)
    )
    sustained_intervals: int = field(
        default_factory=lambda: _get_env_int("SUSTAINED_INTERVALS", 3)
    )
    low_consumption_ratio: float = field(
        default_factory=lambda: _get_env_float("LOW_CONSUMPTION_RATIO", 0.5)
    )

    # Critical level / urgency
    critical_level_pct: float = field(
        default_factory=lambda: _get_env_float("CRITICAL_LEVEL_PCT", 20.0)
    )
    critical_days: float = field(
        default_factory=lambda: _get_env_float("URGENCY_CRITICAL_DAYS", 3.0)
    )
    warning_days: float = field(
        default_factory=lambda: _get_env_float("URGENCY_WARNING_DAYS", 7.0)
    )
    delivery_warning_buffer_days: float = field(
        default_factory=lambda: _get_env_float("DELIVERY_WARNING_BUFFER_DAYS", 3.0)
    )

    # Reliability / confidence
    sensor_expected_gap_hours: float = field(
        default_factory=lambda: _get_env_float("SENSOR_EXPECTED_GAP_HOURS", 2.0)
    )
    manual_expected_gap_hours: float = field(
        default_factory=lambda: _get_env_float("MANUAL_EXPECTED_GAP_HOURS", 168.0)
    )
    sensor_min_readings_per_day: float = field(
        default_factory=lambda: _get_env_float("SENSOR_MIN_READINGS_PER_DAY", 1.0)
    )
    manual_min_readings_per_day: float = field(
        default_factory=lambda: _get_env_float("MANUAL_MIN_READINGS_PER_DAY", 0.14)
    )
    max_gap_penalty: float = field(
        default_factory=lambda: _get_env_float("MAX_GAP_PENALTY", 10.0)
    )
    high_reliability_score: float = field(
        default_factory=lambda: _get_env_float("HIGH_RELIABILITY_SCORE", 70.0)
    )
    low_reliability_score: float = field(
        default_factory=lambda: _get_env_float("LOW_RELIABILITY_SCORE", 40.0)
    )
    high_confidence_samples: int = field(
        default_factory=lambda: _get_env_int("HIGH_CONFIDENCE_SAMPLES", 7)
    )
    low_confidence_samples: int = field(
        default_factory=lambda: _get_env_int("LOW_CONFIDENCE_SAMPLES", 3)
    )

    @property
    def refill_threshold(self) -> RefillThreshold:
        return get_refill_threshold(self.refill_threshold_preset)


# =============================================================================
# DELIVERY SETTINGS
# =============================================================================
@dataclass
class DeliverySettings:
    """Default per-customer delivery settings."""

    lead_time_days: float = field(
        default_factory=lambda: _get_env_float("DELIVERY_LEAD_TIME_DAYS", 3.0)
    )
    target_level_pct: float = field(
        default_factory=lambda: _get_env_float("DELIVERY_TARGET_LEVEL_PCT", 70.0)
    )
    spike_threshold_multiplier: float = field(
        default_factory=lambda: _get_env_float("DELIVERY_SPIKE_THRESHOLD", 2.0)
    )


# =============================================================================
# APPLICATION SETTINGS
# =============================================================================
@dataclass
class AppSettings:
    """General application settings."""

    debug: bool = field(default_factory=lambda: _get_env_bool("DEBUG", False))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_to_file: bool = field(
        default_factory=lambda: _get_env_bool("LOG_TO_FILE", False)
    )
    version: str = "1.0.0"


# =============================================================================
# GLOBAL SETTINGS INSTANCE
# =============================================================================
class Settings:
    """Global settings container - singleton pattern."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize all settings."""
        self.database = DatabaseSettings()
        self.analytics = AnalyticsThresholds()
        self.delivery = DeliverySettings()
        self.app = AppSettings()

    def validate(self) -> List[str]:
        """Validate settings and return list of warnings."""
        warnings = []

        if not self.database.password:
            warnings.append("⚠️ MYSQL_PASSWORD not set")

        if self.analytics.refill_threshold_preset.lower() not in REFILL_THRESHOLD_PRESETS:
            warnings.append(
                f"⚠️ Unknown REFILL_THRESHOLD_PRESET "
                f"'{self.analytics.refill_threshold_preset}' - using 'percent'"
            )

        if self.analytics.warning_days < self.analytics.critical_days:
            warnings.append("⚠️ URGENCY_WARNING_DAYS is below URGENCY_CRITICAL_DAYS")

        return warnings

    def to_dict(self) -> Dict:
        """Export settings as dictionary (for debugging, excludes secrets)."""
        return {
            "version": self.app.version,
            "debug": self.app.debug,
            "database_host": self.database.host,
            "refill_threshold_preset": self.analytics.refill_threshold_preset,
            "critical_level_pct": self.analytics.critical_level_pct,
            "lead_time_days": self.delivery.lead_time_days,
            "target_level_pct": self.delivery.target_level_pct,
        }


# Create global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get global settings instance."""
    return settings


# Export commonly used settings
DATABASE = settings.database
ANALYTICS = settings.analytics
DELIVERY = settings.delivery
APP = settings.app
