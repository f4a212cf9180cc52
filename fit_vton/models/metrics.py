"""Telemetry models."""

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class ProcessingMetrics(BaseModel):
    """One request's latency/outcome record."""

    model_config = ConfigDict(frozen=True)

    start_time: float  # epoch seconds
    end_time: float
    success: bool
    error_type: str | None = None
    performance_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @computed_field
    @property
    def duration_ms(self) -> float:
        return max(0.0, (self.end_time - self.start_time) * 1000.0)


class PerformanceSummary(BaseModel):
    """Aggregate health over the most recent window of requests."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success_rate: float = 0.0
    avg_processing_time: float = 0.0
    avg_performance_score: float = 0.0
    total_sessions: int = 0
    cache_hit_rate: float = 0.0
    cache_size: int = 0
    error_counts: dict[str, int] = Field(default_factory=dict)
