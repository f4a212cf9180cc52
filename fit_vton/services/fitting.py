"""Placement geometry, fit scoring and synthetic fabric physics.

Everything here is rule-based: fixed size charts, fixed per-category priors
and fixed recommendation rules. Recommendation order is part of the output
contract.
"""

from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from ..inference.base import LEFT_SHOULDER, RIGHT_SHOULDER
from ..models import (
    BodyAnalysis,
    BodyMeasurements,
    FabricPhysicsData,
    GarmentCategory,
    GarmentFeatures,
    Landmark,
    Placement,
    SizeBucket,
)

# (x, y) as fractions of the subject size, then (scale_x, scale_y)
FALLBACK_PLACEMENTS: dict[GarmentCategory, tuple[float, float, float, float]] = {
    GarmentCategory.TOP: (0.20, 0.15, 0.60, 0.50),
    GarmentCategory.BOTTOM: (0.25, 0.50, 0.50, 0.40),
    GarmentCategory.DRESS: (0.20, 0.15, 0.60, 0.70),
    GarmentCategory.SHOES: (0.30, 0.82, 0.40, 0.15),
    GarmentCategory.ACCESSORIES: (0.20, 0.20, 0.60, 0.60),
}

ANCHOR_ASPECT = 1.2
ANCHOR_LIFT = 0.3

# Target body measurements (cm) per size. Shoes and accessories have no
# body-measurement chart and score neutrally.
SIZE_CHARTS: dict[GarmentCategory, dict[SizeBucket, dict[str, float]]] = {
    GarmentCategory.TOP: {
        SizeBucket.XS: {"chest": 76, "waist": 61},
        SizeBucket.S: {"chest": 81, "waist": 66},
        SizeBucket.M: {"chest": 86, "waist": 71},
        SizeBucket.L: {"chest": 91, "waist": 76},
        SizeBucket.XL: {"chest": 96, "waist": 81},
    },
    GarmentCategory.BOTTOM: {
        SizeBucket.XS: {"waist": 61, "hips": 86},
        SizeBucket.S: {"waist": 66, "hips": 91},
        SizeBucket.M: {"waist": 71, "hips": 96},
        SizeBucket.L: {"waist": 76, "hips": 101},
        SizeBucket.XL: {"waist": 81, "hips": 106},
    },
    GarmentCategory.DRESS: {
        SizeBucket.XS: {"chest": 76, "waist": 61, "hips": 86},
        SizeBucket.S: {"chest": 81, "waist": 66, "hips": 91},
        SizeBucket.M: {"chest": 86, "waist": 71, "hips": 96},
        SizeBucket.L: {"chest": 91, "waist": 76, "hips": 101},
        SizeBucket.XL: {"chest": 96, "waist": 81, "hips": 106},
    },
    GarmentCategory.SHOES: {},
    GarmentCategory.ACCESSORIES: {},
}

NEUTRAL_FIT_SCORE = 0.5

FABRIC_PRIORS: dict[GarmentCategory, FabricPhysicsData] = {
    GarmentCategory.TOP: FabricPhysicsData(
        drape_coefficient=0.6, stretch_factor=0.2, wrinkle_intensity=0.4,
        shine_factor=0.3, breathability=0.7,
    ),
    GarmentCategory.DRESS: FabricPhysicsData(
        drape_coefficient=0.8, stretch_factor=0.15, wrinkle_intensity=0.5,
        shine_factor=0.4, breathability=0.6,
    ),
    GarmentCategory.BOTTOM: FabricPhysicsData(
        drape_coefficient=0.4, stretch_factor=0.25, wrinkle_intensity=0.3,
        shine_factor=0.2, breathability=0.5,
    ),
    GarmentCategory.SHOES: FabricPhysicsData(
        drape_coefficient=0.1, stretch_factor=0.05, wrinkle_intensity=0.1,
        shine_factor=0.8, breathability=0.3,
    ),
    GarmentCategory.ACCESSORIES: FabricPhysicsData(
        drape_coefficient=0.3, stretch_factor=0.1, wrinkle_intensity=0.2,
        shine_factor=0.6, breathability=0.4,
    ),
}

SIZE_UP_NOTE = "Consider sizing up for a more comfortable fit"
SIZE_DOWN_NOTE = "Consider sizing down for a better fit"
ATHLETIC_NOTE = "This style will complement your athletic build"
BALANCE_NOTE = "This style will balance your proportions beautifully"
GENERIC_NOTES = (
    "This style complements your body shape well",
    "Consider pairing with complementary accessories",
)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def compute_placement(
    landmarks: Sequence[Landmark],
    category: GarmentCategory,
    image_width: int,
    image_height: int,
) -> Placement:
    """Anchor the overlay on the shoulders, or fall back to a fixed per-category rule."""
    confident = [lm for lm in landmarks if lm.confidence > 0.5]
    if len(confident) >= 2:
        by_index = {lm.index: lm for lm in confident}
        if LEFT_SHOULDER in by_index and RIGHT_SHOULDER in by_index:
            first, second = by_index[LEFT_SHOULDER], by_index[RIGHT_SHOULDER]
        else:
            first, second = confident[0], confident[1]

        center_x = (first.x + second.x) / 2
        center_y = (first.y + second.y) / 2
        width = abs(second.x - first.x)
        if width > 0:
            width_px = width * image_width
            return Placement(
                x=center_x * image_width - width_px / 2,
                y=center_y * image_height - width_px * ANCHOR_LIFT,
                scale_x=width,
                scale_y=width * ANCHOR_ASPECT,
            )

    fx, fy, sx, sy = FALLBACK_PLACEMENTS[category]
    return Placement(x=image_width * fx, y=image_height * fy, scale_x=sx, scale_y=sy)


def fit_score(measurements: BodyMeasurements, size: SizeBucket, category: GarmentCategory) -> float:
    """Mean per-dimension closeness to the size chart target; neutral when nothing matches."""
    targets = SIZE_CHARTS.get(category, {}).get(size)
    if not targets:
        return NEUTRAL_FIT_SCORE

    scores = []
    for key, target in targets.items():
        actual = getattr(measurements, key, None)
        if actual and target:
            scores.append(max(0.0, 1 - abs(actual - target) / target))
    return _clamp(sum(scores) / len(scores)) if scores else NEUTRAL_FIT_SCORE


def texture_variance(features: np.ndarray) -> float:
    """Mean absolute deviation of the features from mid-grey."""
    if features.size == 0:
        return 0.5
    return float(np.abs(features - 0.5).mean())


def fabric_physics(features: np.ndarray, category: GarmentCategory) -> FabricPhysicsData:
    """Per-category prior perturbed by texture variance.

    Busier textures drape and wrinkle more, stretch and breathe less, and shine more.
    """
    prior = FABRIC_PRIORS[category]
    v = texture_variance(features)
    return FabricPhysicsData(
        drape_coefficient=prior.drape_coefficient * (1 + v * 0.2),
        stretch_factor=prior.stretch_factor * (1 - v * 0.1),
        wrinkle_intensity=prior.wrinkle_intensity * (1 + v * 0.3),
        shine_factor=prior.shine_factor * (1 + v * 0.2),
        breathability=prior.breathability * (1 - v * 0.1),
    )


def texture_quality(features: np.ndarray) -> float:
    if features.size == 0:
        return 0.5
    variance = float(features.var())
    return _clamp(0.5 + variance * 0.5, 0.3, 1.0)


def combined_confidence(fit: float, detection: float) -> float:
    return _clamp(0.9 * fit + 0.1 * detection)


def recommendations(measurements: BodyMeasurements, size: SizeBucket) -> list[str]:
    notes = []
    if size == SizeBucket.S and measurements.chest > 95:
        notes.append(SIZE_UP_NOTE)
    elif size == SizeBucket.L and measurements.chest < 85:
        notes.append(SIZE_DOWN_NOTE)

    if measurements.chest > measurements.hips:
        notes.append(ATHLETIC_NOTE)
    elif measurements.hips > measurements.chest:
        notes.append(BALANCE_NOTE)

    notes.extend(GENERIC_NOTES)
    return notes


@dataclass
class FitAssessment:
    placement: Placement
    fit_score: float
    confidence: float
    fabric_physics: FabricPhysicsData
    texture_quality: float
    recommendations: list[str] = field(default_factory=list)


class FittingEngine:
    """Combines body analysis and garment features into a FitAssessment."""

    def assess(
        self,
        analysis: BodyAnalysis,
        garment: GarmentFeatures,
        category: GarmentCategory,
        image_width: int,
        image_height: int,
    ) -> FitAssessment:
        score = fit_score(analysis.measurements, garment.size, category)
        return FitAssessment(
            placement=compute_placement(analysis.landmarks, category, image_width, image_height),
            fit_score=score,
            confidence=combined_confidence(score, analysis.confidence),
            fabric_physics=fabric_physics(garment.features, category),
            texture_quality=texture_quality(garment.features),
            recommendations=recommendations(analysis.measurements, garment.size),
        )
