"""Session history and size recommendation models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .body import BodyMeasurements
from .request import GarmentCategory


class TryOnSessionRecord(BaseModel):
    """Outcome of one completed try-on, appended to the user's history."""

    user_id: str
    garment_type: GarmentCategory
    size: str
    measurements: BodyMeasurements
    fit_score: float = Field(ge=0.0, le=1.0)
    processing_time: float
    timestamp: datetime = Field(default_factory=datetime.now)


class SizeRecommendation(BaseModel):
    """Advisory size suggestion derived from a user's fit history."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recommended_size: str
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: list[str] = Field(default_factory=list)

    @property
    def size(self) -> str:
        return self.recommended_size
