"""Capability interfaces for pose landmark estimation and body segmentation."""

from abc import ABC, abstractmethod

import numpy as np

from ..models import Landmark

NUM_KEYPOINTS = 17

# COCO-17 keypoint indices
NOSE = 0
HEAD = (0, 1, 2, 3, 4)
LEFT_SHOULDER, RIGHT_SHOULDER = 5, 6
LEFT_WRIST, RIGHT_WRIST = 9, 10
LEFT_ANKLE, RIGHT_ANKLE = 15, 16


class LandmarkEstimator(ABC):
    """Produces up to 17 body keypoints from a normalized HxWx3 tensor.

    Implementations drop points at or below the confidence threshold and
    return an empty list, never raise, when nothing is found.
    """

    threshold: float = 0.5

    @abstractmethod
    def estimate(self, tensor: np.ndarray) -> list[Landmark]:
        ...


class RegionSegmenter(ABC):
    """Produces a dense HxW body mask in [0, 1], or None when no body region is found."""

    @abstractmethod
    def segment(self, tensor: np.ndarray) -> np.ndarray | None:
        ...


def keypoints_to_landmarks(raw: np.ndarray, threshold: float = 0.5) -> list[Landmark]:
    """Turn a flat (x, y, confidence) * 17 model output into confident landmarks.

    Keypoint order is preserved; weak points are omitted rather than zeroed.
    """
    values = np.asarray(raw, dtype=np.float32).reshape(-1)
    count = min(NUM_KEYPOINTS, values.size // 3)
    landmarks = []
    for i in range(count):
        x, y, confidence = (float(v) for v in values[i * 3:i * 3 + 3])
        if not np.isfinite([x, y, confidence]).all():
            continue
        if confidence > threshold:
            landmarks.append(Landmark(index=i, x=x, y=y, confidence=min(confidence, 1.0)))
    return landmarks
