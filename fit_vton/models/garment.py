"""Garment processing models."""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class SizeBucket(str, Enum):
    XS = "XS"
    S = "S"
    M = "M"
    L = "L"
    XL = "XL"


@dataclass
class GarmentFeatures:
    """Normalized garment image plus the coarse signals derived from it."""
    normalized_image: bytes  # PNG on a transparent square canvas
    features: np.ndarray  # flattened downsample, values in [0, 1]
    size: SizeBucket

    @property
    def mean_feature(self) -> float:
        return float(self.features.mean()) if self.features.size else 0.0


@dataclass(frozen=True)
class Placement:
    """Overlay geometry: pixel offset plus scale as a fraction of the subject size."""
    x: float
    y: float
    scale_x: float
    scale_y: float

    def garment_size(self, width: int, height: int) -> tuple[int, int]:
        """Target garment size in pixels for a subject of the given size."""
        return (
            max(1, round(width * self.scale_x)),
            max(1, round(height * self.scale_y)),
        )
