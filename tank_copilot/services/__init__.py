"""Service layer: pure consumption analytics computations."""

from .anomaly_detector import AnomalyDetector
from .baseline_calculator import BaselineCalculator
from .consumption_classifier import ConsumptionClassifier
from .delivery_recommender import DeliveryRecommender
from .level_predictor import LevelPredictor
from .pattern_analyzer import PatternAnalyzer
from .reading_normalizer import ReadingNormalizer
from .reliability_scorer import ReliabilityScorer
from .trend_analyzer import TrendAnalyzer

__all__ = [
    "AnomalyDetector",
    "BaselineCalculator",
    "ConsumptionClassifier",
    "DeliveryRecommender",
    "LevelPredictor",
    "PatternAnalyzer",
    "ReadingNormalizer",
    "ReliabilityScorer",
    "TrendAnalyzer",
]
