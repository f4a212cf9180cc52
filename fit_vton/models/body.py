"""Body analysis models."""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Landmark(BaseModel):
    """A detected body keypoint in normalized image coordinates."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0, description="Estimator keypoint index (COCO-17 order)")
    x: float
    y: float
    confidence: float = Field(ge=0.0, le=1.0)


class BodyMeasurements(BaseModel):
    """Semantic body measurements in centimeters.

    Coarse anthropometric approximations derived from landmark geometry,
    not calibrated measurements.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    DEFAULTS: ClassVar[dict[str, float]] = {
        "shoulders": 38.0,
        "chest": 88.0,
        "waist": 72.0,
        "hips": 92.0,
        "height": 165.0,
        "arm_length": 58.0,
    }

    shoulders: float = Field(gt=0)
    chest: float = Field(gt=0)
    waist: float = Field(gt=0)
    hips: float = Field(gt=0)
    height: float = Field(gt=0)
    arm_length: float = Field(gt=0)

    @classmethod
    def default(cls) -> "BodyMeasurements":
        """Population-average fallback used when detection is too weak."""
        return cls(**cls.DEFAULTS)

    def as_tuple(self) -> tuple[float, ...]:
        return (self.shoulders, self.chest, self.waist, self.hips, self.height, self.arm_length)


class BodyAnalysis(BaseModel):
    """Outcome of the body analysis stage for one request."""

    body_detected: bool
    measurements: BodyMeasurements
    landmarks: list[Landmark] = Field(default_factory=list)
    mask_present: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
