"""Swappable inference backends for landmark estimation and body segmentation."""

from ..config import InferenceConfig
from .base import LandmarkEstimator, RegionSegmenter, keypoints_to_landmarks
from .heuristic import HeuristicLandmarkEstimator, HeuristicRegionSegmenter
from .model import ModelLandmarkEstimator, ModelRegionSegmenter
from .remote import RemoteInferenceClient

__all__ = [
    "LandmarkEstimator",
    "RegionSegmenter",
    "keypoints_to_landmarks",
    "HeuristicLandmarkEstimator",
    "HeuristicRegionSegmenter",
    "ModelLandmarkEstimator",
    "ModelRegionSegmenter",
    "RemoteInferenceClient",
    "build_backends",
]


def build_backends(config: InferenceConfig) -> tuple[LandmarkEstimator, RegionSegmenter]:
    """Create the estimator/segmenter pair selected by configuration."""
    if config.backend == "heuristic":
        return (
            HeuristicLandmarkEstimator(threshold=config.landmark_threshold),
            HeuristicRegionSegmenter(),
        )
    if config.backend == "remote":
        if not config.remote_url:
            raise ValueError("inference.remote_url is required for the remote backend")
        client = RemoteInferenceClient(config.remote_url, timeout=config.remote_timeout_s)
        return (
            ModelLandmarkEstimator(
                client.predict_keypoints, threshold=config.landmark_threshold, resource=client
            ),
            ModelRegionSegmenter(client.predict_mask),
        )
    raise ValueError(f"Unknown inference backend: {config.backend!r}")
