"""
Configuration helper for the service layer architecture

Usage:
    from tank_copilot.config_helper import setup_architecture

    arch = setup_architecture()
    analytics = arch["orchestrators"]["analytics"].analyze_asset("TANK-01")
"""

from typing import Any, Dict, Optional

from tank_copilot.settings import AnalyticsThresholds, get_settings


def get_db_config() -> Dict[str, Any]:
    """
    Get MySQL connection config in the format expected by repositories.

    Returns:
        Dict with keys: host, port, user, password, database, charset, connect_timeout
    """
    return get_settings().database.to_pymysql_config()


def create_repositories(db_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Create all repository instances.

    Returns:
        {'reading': ReadingRepository, 'asset': AssetRepository,
         'settings': SettingsRepository}
    """
    from tank_copilot.repositories import (
        AssetRepository,
        ReadingRepository,
        SettingsRepository,
    )

    if db_config is None:
        db_config = get_db_config()

    return {
        "reading": ReadingRepository(db_config),
        "asset": AssetRepository(db_config),
        "settings": SettingsRepository(db_config, defaults=get_settings().delivery),
    }


def create_services(thresholds: Optional[AnalyticsThresholds] = None) -> Dict[str, Any]:
    """Create all stateless analytics services sharing one threshold set."""
    from tank_copilot.services import (
        AnomalyDetector,
        BaselineCalculator,
        ConsumptionClassifier,
        DeliveryRecommender,
        LevelPredictor,
        PatternAnalyzer,
        ReadingNormalizer,
        ReliabilityScorer,
        TrendAnalyzer,
    )

    thresholds = thresholds or get_settings().analytics
    return {
        "normalizer": ReadingNormalizer(),
        "classifier": ConsumptionClassifier(thresholds=thresholds),
        "trend": TrendAnalyzer(thresholds),
        "baseline": BaselineCalculator(thresholds),
        "anomaly": AnomalyDetector(thresholds),
        "predictor": LevelPredictor(thresholds),
        "delivery": DeliveryRecommender(thresholds),
        "reliability": ReliabilityScorer(thresholds),
        "pattern": PatternAnalyzer(),
    }


def create_orchestrators(
    repositories: Dict[str, Any],
    services: Dict[str, Any],
    thresholds: Optional[AnalyticsThresholds] = None,
) -> Dict[str, Any]:
    """Create orchestrators with injected repositories and services."""
    from tank_copilot.orchestrators import (
        AssetAnalyticsOrchestrator,
        RefillCalendarOrchestrator,
    )

    analytics = AssetAnalyticsOrchestrator(
        reading_repo=repositories["reading"],
        asset_repo=repositories["asset"],
        settings_repo=repositories["settings"],
        thresholds=thresholds or get_settings().analytics,
        normalizer=services["normalizer"],
        classifier=services["classifier"],
        trend_analyzer=services["trend"],
        baseline_calculator=services["baseline"],
        anomaly_detector=services["anomaly"],
        level_predictor=services["predictor"],
        delivery_recommender=services["delivery"],
        reliability_scorer=services["reliability"],
        pattern_analyzer=services["pattern"],
    )
    return {
        "analytics": analytics,
        "calendar": RefillCalendarOrchestrator(analytics, repositories["asset"]),
    }


def setup_architecture(db_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Complete architecture setup in one call.

    Returns:
        {'repositories': {...}, 'services': {...}, 'orchestrators': {...}}
    """
    repositories = create_repositories(db_config)
    services = create_services()
    orchestrators = create_orchestrators(repositories, services)
    return {
        "repositories": repositories,
        "services": services,
        "orchestrators": orchestrators,
    }
