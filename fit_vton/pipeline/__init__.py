"""Try-on orchestration."""

from .tryon_engine import EngineStage, TryOnEngine

__all__ = ["EngineStage", "TryOnEngine"]
