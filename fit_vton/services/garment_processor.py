"""Garment normalization and coarse feature extraction."""

import logging

import numpy as np
from PIL import Image

from ..errors import InvalidImageFormat, ProcessingFailure
from ..models import GarmentCategory, GarmentFeatures, SizeBucket
from . import image_codec

logger = logging.getLogger(__name__)

# Upper bounds on the mean feature value for each bucket; anything above is XL.
# Placeholder for a trained sizing model.
SIZE_BANDS = (
    (0.3, SizeBucket.XS),
    (0.5, SizeBucket.S),
    (0.7, SizeBucket.M),
    (0.9, SizeBucket.L),
)


def size_bucket(features: np.ndarray) -> SizeBucket:
    """Threshold the mean feature value into one of five size bands."""
    mean = float(features.mean()) if features.size else 0.0
    for upper, bucket in SIZE_BANDS:
        if mean < upper:
            return bucket
    return SizeBucket.XL


class GarmentProcessor:
    """Normalizes a garment photo onto a fixed transparent canvas and fingerprints its texture."""

    def __init__(self, canvas_size: int = 512, feature_size: int = 64):
        self.canvas_size = canvas_size
        self.feature_size = feature_size

    def process(self, garment_bytes: bytes, category: GarmentCategory) -> GarmentFeatures:
        try:
            normalized = image_codec.resize(
                garment_bytes, self.canvas_size, self.canvas_size, mode="contain"
            )
            features = self.extract_features(normalized)
        except InvalidImageFormat as e:
            raise ProcessingFailure(f"Garment processing failed: {e.message}") from e
        except (OSError, ValueError) as e:
            raise ProcessingFailure(f"Garment processing failed: {e}") from e

        size = size_bucket(features)
        logger.debug("Garment %s: mean feature %.3f -> size %s", category.value, features.mean(), size.value)
        return GarmentFeatures(normalized_image=normalized, features=features, size=size)

    def extract_features(self, image_bytes: bytes) -> np.ndarray:
        """Flattened RGB downsample in [0, 1]; a texture/size signal, not a semantic embedding."""
        img = image_codec.open_image(image_bytes, "RGB")
        small = img.resize((self.feature_size, self.feature_size), Image.Resampling.BILINEAR)
        return (np.asarray(small, dtype=np.float32) / 255.0).reshape(-1)
