"""
Fixed scenario definitions for the stream delay reproductions.

Each scenario pins the prompt, model and delay threshold of one harness:
1. Direct model stream (Bedrock, unified event stream)
2. Agent wrapper stream (plain-text increments)
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


class ErrorPolicy(Enum):
    """How a failed run maps to the process exit status."""

    FAIL_PROCESS = "fail_process"  # exit 1
    LOG_AND_CONTINUE = "log_and_continue"  # exit 0


@dataclass(frozen=True)
class Scenario:
    """Definition of a reproduction scenario."""

    name: str
    description: str
    prompt: str
    model: str
    delay_threshold_ms: float
    error_policy: ErrorPolicy
    provider: Optional[str] = None
    max_tokens: int = 256
    agent_name: Optional[str] = None
    instructions: Optional[str] = None
    expected_close_ms: Optional[float] = None

    def with_overrides(
        self,
        model: Optional[str] = None,
        prompt: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> "Scenario":
        """Copy of the scenario with the given fields replaced."""
        changes = {}
        if model:
            changes["model"] = model
        if prompt:
            changes["prompt"] = prompt
        if provider:
            changes["provider"] = provider
        return replace(self, **changes)


HELLO_PROMPT = "Say hello in 10 words or less"


DIRECT_STREAM = Scenario(
    name="direct_stream",
    description="Model SDK stream over Bedrock; full event stream",
    prompt=HELLO_PROMPT,
    model="us.anthropic.claude-haiku-4-5-20251001-v1:0",
    provider="bedrock",
    max_tokens=100,
    delay_threshold_ms=2000,
    error_policy=ErrorPolicy.FAIL_PROCESS,
)

AGENT_STREAM = Scenario(
    name="agent_stream",
    description="Agent wrapper stream; plain-text increments only",
    prompt=HELLO_PROMPT,
    model="claude-3-5-sonnet-20241022",
    agent_name="test-agent",
    instructions="You are a helpful assistant. Keep responses brief.",
    delay_threshold_ms=1000,
    expected_close_ms=100,
    # Errors are logged and the process still exits 0.
    error_policy=ErrorPolicy.LOG_AND_CONTINUE,
)


ALL_SCENARIOS = [DIRECT_STREAM, AGENT_STREAM]


def get_scenario(name: str) -> Scenario:
    """Get a scenario by name."""
    for scenario in ALL_SCENARIOS:
        if scenario.name == name:
            return scenario
    raise ValueError(f"Unknown scenario: {name}")
