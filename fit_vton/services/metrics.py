"""Rolling latency/outcome telemetry."""

import logging
import threading
from collections import Counter, deque

from ..models import PerformanceSummary, ProcessingMetrics

logger = logging.getLogger(__name__)


def performance_score(processing_ms: float, confidence: float, target_latency_ms: float = 5000.0) -> float:
    """Average of a latency score (1 at 0 ms, 0 at the target) and result confidence."""
    time_score = max(0.0, 1 - processing_ms / target_latency_ms)
    return max(0.0, min(1.0, (time_score + confidence) / 2))


class MetricsRecorder:
    """Bounded FIFO ring buffer of ProcessingMetrics.

    Once full, each append evicts the oldest record by insertion order.
    """

    def __init__(self, capacity: int = 1000, summary_window: int = 100):
        self.capacity = capacity
        self.summary_window = summary_window
        self._records: deque[ProcessingMetrics] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def record(self, metrics: ProcessingMetrics) -> None:
        with self._lock:
            self._records.append(metrics)
        if not metrics.success:
            logger.debug("Recorded failure metric: %s", metrics.error_type)

    def records(self) -> list[ProcessingMetrics]:
        """Snapshot of the buffer, oldest first."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def summary(self, cache_hits: int = 0, cache_size: int = 0) -> PerformanceSummary:
        """Aggregate the most recent window of records."""
        with self._lock:
            total = len(self._records)
            recent = list(self._records)[-self.summary_window:]

        if not recent:
            return PerformanceSummary(cache_size=cache_size)

        lookups = cache_hits + total
        return PerformanceSummary(
            success_rate=sum(1 for m in recent if m.success) / len(recent),
            avg_processing_time=sum(m.duration_ms for m in recent) / len(recent),
            avg_performance_score=sum(m.performance_score for m in recent) / len(recent),
            total_sessions=total,
            cache_hit_rate=cache_hits / lookups if lookups else 0.0,
            cache_size=cache_size,
            error_counts=dict(Counter(m.error_type for m in recent if m.error_type)),
        )

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
