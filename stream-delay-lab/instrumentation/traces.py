"""
Tracing utilities for stream delay runs.

Provides OpenTelemetry spans around each harness run and optional
Langfuse recording of the measured timings.
"""

import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from langfuse import Langfuse
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from opentelemetry.trace import Status, StatusCode

from instrumentation.timing import RunResult


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


class TracingConfig:
    """Configuration for tracing setup."""

    def __init__(
        self,
        service_name: str = "stream-delay-lab",
        enable_console_export: Optional[bool] = None,
        langfuse_public_key: Optional[str] = None,
        langfuse_secret_key: Optional[str] = None,
        langfuse_host: Optional[str] = None,
    ):
        self.service_name = service_name
        if enable_console_export is None:
            enable_console_export = _env_flag("STREAM_DELAY_TRACE_CONSOLE")
        self.enable_console_export = enable_console_export
        self.langfuse_public_key = langfuse_public_key or os.getenv("LANGFUSE_PUBLIC_KEY")
        self.langfuse_secret_key = langfuse_secret_key or os.getenv("LANGFUSE_SECRET_KEY")
        self.langfuse_host = langfuse_host or os.getenv("LANGFUSE_HOST", "https://cloud.langfuse.com")

    @property
    def langfuse_enabled(self) -> bool:
        return bool(self.langfuse_public_key and self.langfuse_secret_key)


class Tracer:
    """Tracer wrapping OpenTelemetry spans and Langfuse recording."""

    def __init__(self, config: Optional[TracingConfig] = None):
        self.config = config or TracingConfig()
        self._otel_tracer = None
        self._langfuse_client: Optional[Langfuse] = None
        self._initialized = False

    def initialize(self) -> "Tracer":
        """Initialize tracing backends."""
        if self._initialized:
            return self

        resource = Resource.create({"service.name": self.config.service_name})
        provider = TracerProvider(resource=resource)

        if self.config.enable_console_export:
            provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

        trace.set_tracer_provider(provider)
        self._otel_tracer = trace.get_tracer(self.config.service_name)

        # Initialize Langfuse
        if self.config.langfuse_enabled:
            self._langfuse_client = Langfuse(
                public_key=self.config.langfuse_public_key,
                secret_key=self.config.langfuse_secret_key,
                host=self.config.langfuse_host,
            )

        self._initialized = True
        return self

    def shutdown(self) -> None:
        """Shutdown tracing backends."""
        provider = trace.get_tracer_provider()
        if isinstance(provider, TracerProvider):
            provider.shutdown()

        if self._langfuse_client:
            self._langfuse_client.flush()

    @asynccontextmanager
    async def async_span(
        self,
        name: str,
        attributes: Optional[dict] = None,
    ) -> AsyncIterator[Any]:
        """Create a traced span for async operations.

        Usage:
            async with tracer.async_span("direct_stream") as span:
                # do async work
        """
        if not self._initialized:
            self.initialize()

        span_obj = self._otel_tracer.start_span(name)
        if attributes:
            for key, value in attributes.items():
                span_obj.set_attribute(key, value)

        try:
            yield span_obj
        except Exception as e:
            span_obj.set_status(Status(StatusCode.ERROR, str(e)))
            span_obj.record_exception(e)
            raise
        finally:
            span_obj.end()

    def record_result(self, span: Any, result: RunResult) -> None:
        """Attach the measured timings to a span."""
        span.set_attribute("stream.chunk_count", result.chunk_count)
        span.set_attribute("stream.last_text_ms", result.last_text_ms)
        span.set_attribute("stream.total_ms", result.total_ms)
        span.set_attribute("stream.delay_after_last_text_ms", result.delay_after_last_text_ms)
        for sample in result.samples:
            span.set_attribute(f"stream.event.{sample.label}_ms", sample.at_ms)

    def record_generation(
        self,
        name: str,
        model: str,
        prompt: str,
        result: RunResult,
    ) -> None:
        """Record a run as a Langfuse generation, when Langfuse is configured."""
        if not self._initialized:
            self.initialize()

        if not self._langfuse_client:
            return

        try:
            with self._langfuse_client.start_as_current_observation(
                name=name,
                as_type="generation",
                model=model,
            ) as obs:
                obs.update(
                    input={"prompt": prompt[:500]},
                    metadata={"streaming": True, **result.to_dict()},
                )
            print(f"[Langfuse] Run recorded: {name}")
        except Exception as e:
            print(f"[Langfuse] Error recording run: {e}")


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer(config: Optional[TracingConfig] = None) -> Tracer:
    """Get or create the global tracer instance."""
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(config)
    return _global_tracer


def init_tracing(config: Optional[TracingConfig] = None) -> Tracer:
    """Initialize global tracing."""
    tracer = get_tracer(config)
    return tracer.initialize()


def shutdown_tracing() -> None:
    """Shutdown global tracing."""
    global _global_tracer
    if _global_tracer:
        _global_tracer.shutdown()
        _global_tracer = None
