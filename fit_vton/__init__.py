"""FIT-VTON: photo-based virtual try-on with fit scoring."""

from .config import EngineConfig, load_config
from .pipeline import TryOnEngine

__version__ = "1.0.0"

__all__ = [
    "EngineConfig",
    "load_config",
    "TryOnEngine",
]
