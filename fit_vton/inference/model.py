"""Adapters that put a trained model's raw outputs behind the capability interfaces."""

from typing import Any, Callable

import numpy as np

from ..models import Landmark
from .base import LandmarkEstimator, RegionSegmenter, keypoints_to_landmarks

Predictor = Callable[[np.ndarray], np.ndarray | None]


class _ModelBacked:
    """Holds the predictor and the runtime resource (session, client) behind it."""

    def __init__(self, predict: Predictor, resource: Any = None):
        self.predict = predict
        self.resource = resource

    def _run(self, tensor: np.ndarray) -> np.ndarray | None:
        batch = np.expand_dims(tensor, 0)
        try:
            return self.predict(batch)
        finally:
            del batch

    def close(self) -> None:
        close = getattr(self.resource, "close", None)
        if close is not None:
            close()


class ModelLandmarkEstimator(_ModelBacked, LandmarkEstimator):
    """Wraps a pose model whose output is the flat 17 x (x, y, confidence) vector.

    ``predict`` receives a batched 1xHxWx3 float32 tensor.
    """

    def __init__(self, predict: Predictor, threshold: float = 0.5, resource: Any = None):
        super().__init__(predict, resource)
        self.threshold = threshold

    def estimate(self, tensor: np.ndarray) -> list[Landmark]:
        raw = self._run(tensor)
        if raw is None:
            return []
        return keypoints_to_landmarks(raw, self.threshold)


class ModelRegionSegmenter(_ModelBacked, RegionSegmenter):
    """Wraps a segmentation model returning HxW (or flat H*W) foreground probabilities."""

    def segment(self, tensor: np.ndarray) -> np.ndarray | None:
        raw = self._run(tensor)
        if raw is None:
            return None
        mask = np.asarray(raw, dtype=np.float32)
        if mask.size == 0:
            return None
        height, width = tensor.shape[:2]
        if mask.size == height * width:
            mask = mask.reshape(height, width)
        else:
            mask = np.squeeze(mask)
        return np.clip(mask, 0.0, 1.0)
