"""Data models for the try-on engine."""

from .request import GarmentCategory, TryOnRequest
from .body import Landmark, BodyMeasurements, BodyAnalysis
from .garment import SizeBucket, GarmentFeatures, Placement
from .result import FabricPhysicsData, TryOnMetadata, TryOnResult
from .metrics import ProcessingMetrics, PerformanceSummary
from .session import TryOnSessionRecord, SizeRecommendation

__all__ = [
    "GarmentCategory",
    "TryOnRequest",
    "Landmark",
    "BodyMeasurements",
    "BodyAnalysis",
    "SizeBucket",
    "GarmentFeatures",
    "Placement",
    "FabricPhysicsData",
    "TryOnMetadata",
    "TryOnResult",
    "ProcessingMetrics",
    "PerformanceSummary",
    "TryOnSessionRecord",
    "SizeRecommendation",
]
