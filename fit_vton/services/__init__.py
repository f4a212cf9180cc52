"""Pipeline stage services."""

from . import image_codec
from .body_analysis import BodyAnalyzer, MeasurementCalculator, detection_confidence
from .cache import ResultCache, SingleFlight, fingerprint
from .compositor import composite
from .fitting import FitAssessment, FittingEngine
from .garment_processor import GarmentProcessor
from .metrics import MetricsRecorder, performance_score
from .session_store import InMemorySessionStore, SessionStore
from .size_recommendation import SizeRecommendationService

__all__ = [
    "image_codec",
    "BodyAnalyzer",
    "MeasurementCalculator",
    "detection_confidence",
    "ResultCache",
    "SingleFlight",
    "fingerprint",
    "composite",
    "FitAssessment",
    "FittingEngine",
    "GarmentProcessor",
    "MetricsRecorder",
    "performance_score",
    "InMemorySessionStore",
    "SessionStore",
    "SizeRecommendationService",
]
