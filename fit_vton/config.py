"""Configuration management for the try-on engine."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class InferenceConfig(BaseModel):
    """Landmark/segmentation runtime settings."""
    backend: str = "heuristic"  # "heuristic" or "remote"
    input_size: int = 256
    landmark_threshold: float = 0.5
    remote_url: str | None = None  # inference server, used when backend == "remote"
    remote_timeout_s: float = 10.0


class CacheConfig(BaseModel):
    """Result cache settings."""
    max_entries: int = 512
    ttl_s: float | None = 3600.0  # None = entries live until evicted


class MetricsConfig(BaseModel):
    """Rolling telemetry settings."""
    capacity: int = 1000
    summary_window: int = 100
    target_latency_ms: float = 5000.0  # latency at which the time score hits 0


class ApiConfig(BaseModel):
    """HTTP surface settings."""
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class EngineConfig(BaseSettings):
    """Main engine configuration."""

    # Geometry
    garment_canvas: int = 512
    feature_size: int = 64
    pixels_per_cm: float = 2.5  # normalized distance * image px / this = cm

    # Budget for a single request
    request_timeout_s: float = 30.0

    log_level: str = "INFO"

    # Sub-configs
    inference: InferenceConfig = Field(default_factory=InferenceConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    class Config:
        env_file = ".env"
        env_prefix = "FIT_VTON_"
        env_nested_delimiter = "__"
        extra = "ignore"


def load_config() -> EngineConfig:
    """Load configuration from environment and defaults."""
    return EngineConfig()
