"""
Bounded, append-only performance metrics for anchor operations.

Samples are kept in a fixed-size deque; once full, the oldest sample is
dropped for every new one. The store is not synchronised and should stay
confined to the thread that owns the coordinator.
"""

from __future__ import annotations

from collections import deque
from enum import Enum

from pydantic import BaseModel

from textanchor.config import METRICS_CAPACITY
from textanchor.models import AnchorStrategy


class Operation(str, Enum):
    CREATE = "create"
    RESOLVE = "resolve"


class MetricsSample(BaseModel):
    """
    One recorded operation.

    Attributes:
        operation: Whether this was an anchor creation or a resolution
        strategy: Last strategy attempted, or None if none ran
        elapsed_ms: Wall-clock time of the operation
        success: Whether the operation produced a result
        timed_out: Whether the resolution budget ran out
        confidence: Confidence of the anchor involved
    """

    operation: Operation
    strategy: AnchorStrategy | None = None
    elapsed_ms: float
    success: bool
    timed_out: bool = False
    confidence: float = 0.0


class MetricsSummary(BaseModel):
    """Aggregated view over the retained samples."""

    total_operations: int = 0
    resolutions: int = 0
    success_rate: float = 0.0
    timeouts: int = 0
    average_resolution_ms: float = 0.0
    average_creation_ms: float = 0.0
    strategy_distribution: dict[AnchorStrategy, int] = {}


class AnchorMetrics:
    """Fixed-capacity store of metric samples."""

    def __init__(self, capacity: int = METRICS_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"Metrics capacity must be positive, got {capacity}")
        self._samples: deque[MetricsSample] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._samples.maxlen or 0

    @property
    def samples(self) -> list[MetricsSample]:
        """Retained samples, oldest first."""
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, sample: MetricsSample) -> None:
        self._samples.append(sample)

    def clear(self) -> None:
        self._samples.clear()

    def summary(self) -> MetricsSummary:
        """
        Aggregate the retained samples.

        Success rate, timeouts and the strategy distribution are computed over
        resolutions only; the distribution has an entry for every strategy.
        """
        distribution = {strategy: 0 for strategy in AnchorStrategy}
        resolutions = [s for s in self._samples if s.operation == Operation.RESOLVE]
        creations = [s for s in self._samples if s.operation == Operation.CREATE]

        for sample in resolutions:
            if sample.strategy is not None:
                distribution[sample.strategy] += 1

        return MetricsSummary(
            total_operations=len(self._samples),
            resolutions=len(resolutions),
            success_rate=_ratio(sum(s.success for s in resolutions), len(resolutions)),
            timeouts=sum(s.timed_out for s in resolutions),
            average_resolution_ms=_mean([s.elapsed_ms for s in resolutions]),
            average_creation_ms=_mean([s.elapsed_ms for s in creations]),
            strategy_distribution=distribution,
        )


def _ratio(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0
