"""Body analysis: landmarks + segmentation -> measurements and detection confidence."""

import asyncio
import logging
import math
from typing import Sequence

import numpy as np

from ..inference import LandmarkEstimator, RegionSegmenter
from ..inference.base import (
    HEAD,
    LEFT_ANKLE,
    LEFT_SHOULDER,
    LEFT_WRIST,
    RIGHT_ANKLE,
    RIGHT_SHOULDER,
    RIGHT_WRIST,
)
from ..models import BodyAnalysis, BodyMeasurements, Landmark
from .image_codec import ContentBox

logger = logging.getLogger(__name__)

MIN_LANDMARKS = 5

MASK_PRESENT_TERM = 0.8
MASK_ABSENT_TERM = 0.3

# Coarse anthropometric ratios
CHEST_PER_SHOULDER = 2.5
WAIST_PER_CHEST = 0.85
HIPS_PER_WAIST = 1.1


def _distance(a: Landmark, b: Landmark) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def round_half_up(value: float) -> int:
    """Nearest whole number, .5 rounding away from zero for positive values."""
    return math.floor(value + 0.5)


def to_image_coordinates(landmarks: Sequence[Landmark], box: ContentBox, tensor_size: int) -> list[Landmark]:
    """Map landmarks normalized to the letterboxed tensor back onto the original photo."""
    mapped = []
    for lm in landmarks:
        x = (lm.x * tensor_size - box.left) / box.width
        y = (lm.y * tensor_size - box.top) / box.height
        mapped.append(lm.model_copy(update={
            "x": min(1.0, max(0.0, x)),
            "y": min(1.0, max(0.0, y)),
        }))
    return mapped


class MeasurementCalculator:
    """Converts landmark geometry into approximate body measurements (cm)."""

    def __init__(self, pixels_per_cm: float = 2.5):
        if pixels_per_cm <= 0:
            raise ValueError("pixels_per_cm must be positive")
        self.pixels_per_cm = pixels_per_cm

    def compute(self, landmarks: Sequence[Landmark], image_width: int, image_height: int) -> BodyMeasurements:
        if len(landmarks) < MIN_LANDMARKS:
            return BodyMeasurements.default()

        defaults = BodyMeasurements.DEFAULTS
        points = {lm.index: lm for lm in landmarks}

        shoulders = self._scaled(self._pair(points, LEFT_SHOULDER, RIGHT_SHOULDER), image_width)
        if shoulders is None:
            shoulders = defaults["shoulders"]
        chest = shoulders * CHEST_PER_SHOULDER
        waist = chest * WAIST_PER_CHEST
        hips = waist * HIPS_PER_WAIST

        height = self._scaled(self._vertical_span(points), image_height) or defaults["height"]
        arm = self._pair(points, LEFT_SHOULDER, LEFT_WRIST)
        if arm is None:
            arm = self._pair(points, RIGHT_SHOULDER, RIGHT_WRIST)
        arm_length = self._scaled(arm, image_width) or defaults["arm_length"]

        values = {
            "shoulders": shoulders,
            "chest": chest,
            "waist": waist,
            "hips": hips,
            "height": height,
            "arm_length": arm_length,
        }
        rounded = {
            key: float(round_half_up(value)) if round_half_up(value) > 0 else defaults[key]
            for key, value in values.items()
        }
        return BodyMeasurements(**rounded)

    def _scaled(self, normalized: float | None, dimension: int) -> float | None:
        if normalized is None:
            return None
        value = normalized * dimension / self.pixels_per_cm
        return value if value > 0 else None

    @staticmethod
    def _pair(points: dict[int, Landmark], a: int, b: int) -> float | None:
        if a in points and b in points:
            return _distance(points[a], points[b])
        return None

    @staticmethod
    def _vertical_span(points: dict[int, Landmark]) -> float | None:
        head = [points[i].y for i in HEAD if i in points]
        ankles = [points[i].y for i in (LEFT_ANKLE, RIGHT_ANKLE) if i in points]
        if not head or not ankles:
            return None
        return abs(max(ankles) - min(head))


def detection_confidence(landmarks: Sequence[Landmark], mask: np.ndarray | None) -> float:
    """Blend mean landmark confidence with a weak segmentation-presence term."""
    if not landmarks:
        return 0.0
    landmark_confidence = sum(lm.confidence for lm in landmarks) / len(landmarks)
    segmentation_term = MASK_PRESENT_TERM if mask is not None else MASK_ABSENT_TERM
    return min(1.0, (landmark_confidence + segmentation_term) / 2)


class BodyAnalyzer:
    """Runs estimation and segmentation concurrently and derives a BodyAnalysis."""

    def __init__(
        self,
        estimator: LandmarkEstimator,
        segmenter: RegionSegmenter,
        calculator: MeasurementCalculator | None = None,
    ):
        self.estimator = estimator
        self.segmenter = segmenter
        self.calculator = calculator or MeasurementCalculator()

    async def analyze(
        self,
        tensor: np.ndarray,
        image_width: int,
        image_height: int,
        box: ContentBox | None = None,
    ) -> BodyAnalysis:
        """Analyse one model input.

        ``box`` locates the photo inside a letterboxed tensor. When given,
        landmarks are mapped back to photo coordinates before measuring.
        """
        mask = None
        try:
            landmarks, mask = await asyncio.gather(
                asyncio.to_thread(self.estimator.estimate, tensor),
                asyncio.to_thread(self.segmenter.segment, tensor),
            )
            logger.debug(
                "Body analysis: %d landmarks, mask %s",
                len(landmarks), "present" if mask is not None else "absent",
            )
            if box is not None:
                landmarks = to_image_coordinates(landmarks, box, tensor.shape[1])

            if not landmarks:
                return BodyAnalysis(
                    body_detected=False,
                    measurements=BodyMeasurements.default(),
                    mask_present=mask is not None,
                )

            return BodyAnalysis(
                body_detected=True,
                measurements=self.calculator.compute(landmarks, image_width, image_height),
                landmarks=list(landmarks),
                mask_present=mask is not None,
                confidence=detection_confidence(landmarks, mask),
            )
        finally:
            # the mask is only a confidence signal; drop it with the request
            del mask
