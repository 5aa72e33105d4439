"""Pytest fixtures and fakes for the stream delay harnesses."""

import pytest

from harness.reporter import ConsoleReporter
from instrumentation.traces import Tracer, TracingConfig


class FakeClock:
    """Clock returning a settable time in seconds."""

    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Keep real tracing and proxy settings out of tests."""
    for name in (
        "LANGFUSE_PUBLIC_KEY",
        "LANGFUSE_SECRET_KEY",
        "LANGFUSE_HOST",
        "STREAM_DELAY_TRACE_CONSOLE",
        "CLAUDE_PROXY_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reporter():
    return ConsoleReporter(use_color=False)


@pytest.fixture
def tracer():
    return Tracer(TracingConfig(enable_console_export=False))
