"""Placeholder inference backed by colour statistics instead of trained weights.

The subject is assumed to stand in front of a roughly uniform background: the
border colour is taken as background and everything far enough from it is
treated as body. Keypoints are laid out at fixed anthropometric fractions of
the silhouette's bounding box.
"""

import numpy as np

from ..models import Landmark
from .base import LandmarkEstimator, RegionSegmenter

FOREGROUND_DISTANCE = 0.15
MIN_COVERAGE = 0.05

# (u, v) within the silhouette bounding box, COCO-17 order.
# Person's left appears on the image right.
KEYPOINT_TEMPLATE = (
    (0.50, 0.06),  # nose
    (0.53, 0.045), (0.47, 0.045),  # eyes
    (0.56, 0.055), (0.44, 0.055),  # ears
    (0.72, 0.19), (0.28, 0.19),  # shoulders
    (0.80, 0.33), (0.20, 0.33),  # elbows
    (0.84, 0.46), (0.16, 0.46),  # wrists
    (0.62, 0.52), (0.38, 0.52),  # hips
    (0.60, 0.72), (0.40, 0.72),  # knees
    (0.59, 0.94), (0.41, 0.94),  # ankles
)


def background_distance(tensor: np.ndarray) -> np.ndarray:
    """Per-pixel colour distance from the median border colour, scaled to [0, 1]."""
    border = np.concatenate([tensor[0], tensor[-1], tensor[:, 0], tensor[:, -1]])
    background = np.median(border, axis=0)
    return np.linalg.norm(tensor - background, axis=2) / np.sqrt(3.0)


class HeuristicRegionSegmenter(RegionSegmenter):

    def __init__(self, distance: float = FOREGROUND_DISTANCE, min_coverage: float = MIN_COVERAGE):
        self.distance = distance
        self.min_coverage = min_coverage

    def segment(self, tensor: np.ndarray) -> np.ndarray | None:
        mask = np.clip(background_distance(tensor) / (2 * self.distance), 0.0, 1.0)
        if float((mask > 0.5).mean()) < self.min_coverage:
            return None
        return mask.astype(np.float32)


class HeuristicLandmarkEstimator(LandmarkEstimator):

    def __init__(
        self,
        threshold: float = 0.5,
        distance: float = FOREGROUND_DISTANCE,
        min_coverage: float = MIN_COVERAGE,
        window: int = 4,
    ):
        self.threshold = threshold
        self.distance = distance
        self.min_coverage = min_coverage
        self.window = window

    def estimate(self, tensor: np.ndarray) -> list[Landmark]:
        foreground = background_distance(tensor) > self.distance
        if float(foreground.mean()) < self.min_coverage:
            return []

        rows = np.flatnonzero(foreground.any(axis=1))
        cols = np.flatnonzero(foreground.any(axis=0))
        height, width = foreground.shape
        top, bottom = rows[0], rows[-1] + 1
        left, right = cols[0], cols[-1] + 1
        box_w, box_h = right - left, bottom - top

        # people photographed standing are taller than wide
        aspect = box_h / max(box_w, 1)
        shape_score = min(1.0, aspect / 1.2)

        landmarks = []
        for index, (u, v) in enumerate(KEYPOINT_TEMPLATE):
            px = left + u * box_w
            py = top + v * box_h
            support = self._local_support(foreground, px, py)
            confidence = float(np.clip(0.2 + 0.55 * support + 0.25 * shape_score, 0.0, 1.0))
            if confidence > self.threshold:
                landmarks.append(Landmark(
                    index=index,
                    x=px / width,
                    y=py / height,
                    confidence=confidence,
                ))
        return landmarks

    def _local_support(self, foreground: np.ndarray, px: float, py: float) -> float:
        r = self.window
        cx, cy = int(px), int(py)
        patch = foreground[max(0, cy - r):cy + r + 1, max(0, cx - r):cx + r + 1]
        return float(patch.mean()) if patch.size else 0.0
