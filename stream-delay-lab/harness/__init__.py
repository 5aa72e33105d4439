"""
Reproduction harnesses for stream close latency.

Provides the two harnesses, run orchestration and console reporting.
"""

from .outcome import (
    HarnessOutcome,
    exit_code,
)

from .direct_stream import run_direct_stream
from .agent_stream import run_agent_stream

from .runner import (
    run_scenario,
    run_direct,
    run_agent,
    direct_main,
    agent_main,
)

from .reporter import ConsoleReporter

__all__ = [
    # Outcome
    "HarnessOutcome",
    "exit_code",
    # Harnesses
    "run_direct_stream",
    "run_agent_stream",
    # Runner
    "run_scenario",
    "run_direct",
    "run_agent",
    "direct_main",
    "agent_main",
    # Reporter
    "ConsoleReporter",
]
