"""Try-on result models. Field names serialize in camelCase for the HTTP contract."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FabricPhysicsData(_CamelModel):
    """Synthetic descriptors of how a garment visually behaves."""

    drape_coefficient: float
    stretch_factor: float
    wrinkle_intensity: float
    shine_factor: float
    breathability: float


class TryOnMetadata(_CamelModel):
    body_detected: bool
    garment_fit_score: float = Field(ge=0.0, le=1.0)
    recommendations: list[str] = Field(default_factory=list)
    fabric_physics: FabricPhysicsData
    texture_quality: float = Field(ge=0.0, le=1.0)


class TryOnResult(_CamelModel):
    """Composite image plus fit assessment. Immutable once created."""

    result_image: str = Field(description="PNG data URL of the composite")
    confidence: float = Field(ge=0.0, le=1.0)
    processing_time: float = Field(ge=0.0, description="Milliseconds")
    metadata: TryOnMetadata

    def to_response(self) -> dict:
        """Serialize with the field-exact camelCase names."""
        return self.model_dump(by_alias=True)
