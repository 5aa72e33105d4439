"""
Timing utilities for stream close latency measurements.

Provides a timer that records the lifecycle of one streamed response:
- Last text increment
- Named lifecycle events (text-end, finish)
- Stream closed (consuming loop exit)

and a collector that aggregates the resulting delays over repeated runs.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional


Clock = Callable[[], float]


@dataclass(frozen=True)
class TimingSample:
    """A named event observed at `at_ms` after the run started."""

    label: str
    at_ms: float


@dataclass
class RunResult:
    """Container for the timings of a single streamed run."""

    name: str
    last_text_ms: float = 0.0
    end_ms: float = 0.0
    chunk_count: int = 0
    samples: list[TimingSample] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def total_ms(self) -> float:
        """Time from run start to loop exit in milliseconds."""
        return self.end_ms

    @property
    def delay_after_last_text_ms(self) -> float:
        """Time between the last text increment and loop exit."""
        return self.end_ms - self.last_text_ms

    def sample_ms(self, label: str) -> Optional[float]:
        """Timestamp of the last sample recorded under `label`."""
        for sample in reversed(self.samples):
            if sample.label == label:
                return sample.at_ms
        return None

    def after_last_text_ms(self, label: str) -> Optional[float]:
        """Offset of a recorded sample from the last text increment."""
        at_ms = self.sample_ms(label)
        if at_ms is None:
            return None
        return at_ms - self.last_text_ms

    def exceeds(self, threshold_ms: float) -> bool:
        """Whether the close delay reaches `threshold_ms`."""
        return self.delay_after_last_text_ms >= threshold_ms

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "last_text_ms": self.last_text_ms,
            "end_ms": self.end_ms,
            "total_ms": self.total_ms,
            "delay_after_last_text_ms": self.delay_after_last_text_ms,
            "chunk_count": self.chunk_count,
            "samples": {s.label: s.at_ms for s in self.samples},
            "metadata": self.metadata,
        }


class StreamDelayTimer:
    """Timer specialized for measuring how long a stream takes to close.

    All timestamps are kept relative to `start()`. The clock is injectable
    so a fake clock can drive it in tests.
    """

    def __init__(self, name: str = "stream", clock: Clock = time.perf_counter):
        self.name = name
        self.clock = clock
        self.start_time: float = 0.0
        self.last_text_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.chunk_count: int = 0
        self.samples: list[TimingSample] = []

    def start(self) -> "StreamDelayTimer":
        """Start the timer."""
        self.start_time = self.clock()
        return self

    def _relative_ms(self, t: float) -> float:
        return (t - self.start_time) * 1000

    def now_ms(self) -> float:
        """Milliseconds elapsed since start."""
        return self._relative_ms(self.clock())

    @property
    def last_text_ms(self) -> float:
        """Last text increment in milliseconds, or 0 if none arrived."""
        if self.last_text_time is None:
            return 0.0
        return self._relative_ms(self.last_text_time)

    def mark_text(self, at: Optional[float] = None) -> float:
        """Record a text increment and return its timestamp in ms."""
        self.last_text_time = self.clock() if at is None else at
        self.chunk_count += 1
        return self.last_text_ms

    def mark(self, label: str, at: Optional[float] = None) -> TimingSample:
        """Record a named lifecycle event."""
        t = self.clock() if at is None else at
        sample = TimingSample(label=label, at_ms=self._relative_ms(t))
        self.samples.append(sample)
        return sample

    def stop(self) -> "StreamDelayTimer":
        """Mark the consuming loop as finished."""
        self.end_time = self.clock()
        return self

    def to_result(self, **metadata) -> RunResult:
        """Convert to RunResult."""
        end_time = self.end_time if self.end_time is not None else self.clock()
        return RunResult(
            name=self.name,
            last_text_ms=self.last_text_ms,
            end_ms=self._relative_ms(end_time),
            chunk_count=self.chunk_count,
            samples=list(self.samples),
            metadata=metadata,
        )


class LatencyCollector:
    """Collects and aggregates run results across multiple runs."""

    def __init__(self):
        self.results: list[RunResult] = []

    def add(self, result: RunResult) -> None:
        """Add a run result."""
        self.results.append(result)

    @property
    def count(self) -> int:
        """Number of collected results."""
        return len(self.results)

    def delays_ms(self) -> list[float]:
        """Delay after last text for every run."""
        return [r.delay_after_last_text_ms for r in self.results]

    def totals_ms(self) -> list[float]:
        """Total time for every run."""
        return [r.total_ms for r in self.results]

    def percentile(self, values: list[float], p: float) -> float:
        """Calculate percentile of a list of values."""
        if not values:
            return 0.0
        sorted_values = sorted(values)
        k = (len(sorted_values) - 1) * (p / 100)
        f = int(k)
        c = f + 1 if f + 1 < len(sorted_values) else f
        return sorted_values[f] + (k - f) * (sorted_values[c] - sorted_values[f])

    def stats(self) -> dict:
        """Calculate aggregate statistics."""
        delays = self.delays_ms()
        totals = self.totals_ms()

        return {
            "count": self.count,
            "delay_p50_ms": self.percentile(delays, 50),
            "delay_p95_ms": self.percentile(delays, 95),
            "delay_p99_ms": self.percentile(delays, 99),
            "delay_mean_ms": sum(delays) / len(delays) if delays else 0,
            "delay_min_ms": min(delays) if delays else 0,
            "delay_max_ms": max(delays) if delays else 0,
            "total_p50_ms": self.percentile(totals, 50),
            "total_mean_ms": sum(totals) / len(totals) if totals else 0,
        }
