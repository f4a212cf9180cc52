"""Try-on request model."""

from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..errors import InvalidRequest


class GarmentCategory(str, Enum):
    """Garment categories the engine knows how to place and score."""
    TOP = "top"
    BOTTOM = "bottom"
    DRESS = "dress"
    SHOES = "shoes"
    ACCESSORIES = "accessories"


class TryOnRequest(BaseModel):
    """A single try-on call. Built per request and never persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    user_image: str = Field(description="Encoded subject photo (data URL or raw base64)")
    garment_image: str = Field(description="Encoded garment photo (data URL or raw base64)")
    garment_type: GarmentCategory
    user_id: str
    auto_delete: bool = True

    @field_validator("user_image", "garment_image", "user_id")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "TryOnRequest":
        """Validate a raw payload, raising InvalidRequest instead of ValidationError."""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            problems = {
                ".".join(str(p) for p in err["loc"]) or "request": err["msg"]
                for err in e.errors()
            }
            if "garmentType" in problems or "garment_type" in problems:
                message = (
                    "Invalid garment type. Must be one of: "
                    + ", ".join(c.value for c in GarmentCategory)
                )
            elif any(k in problems for k in ("userImage", "garmentImage", "user_image", "garment_image")):
                message = "Both user image and garment image are required"
            elif "userId" in problems or "user_id" in problems:
                message = "User ID is required for processing"
            else:
                message = "Invalid try-on request"
            raise InvalidRequest(message, details=problems) from e
