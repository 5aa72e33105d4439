"""
Instrumentation module for stream delay measurements.

Provides timing utilities and tracing integrations.
"""

from .timing import (
    Clock,
    LatencyCollector,
    RunResult,
    StreamDelayTimer,
    TimingSample,
)

from .traces import (
    Tracer,
    TracingConfig,
    get_tracer,
    init_tracing,
    shutdown_tracing,
)

__all__ = [
    # Timing
    "Clock",
    "LatencyCollector",
    "RunResult",
    "StreamDelayTimer",
    "TimingSample",
    # Tracing
    "Tracer",
    "TracingConfig",
    "get_tracer",
    "init_tracing",
    "shutdown_tracing",
]
