"""
Scenario definitions for stream delay reproductions.
"""

from .definitions import (
    Scenario,
    ErrorPolicy,
    ALL_SCENARIOS,
    DIRECT_STREAM,
    AGENT_STREAM,
    HELLO_PROMPT,
    get_scenario,
)

__all__ = [
    "Scenario",
    "ErrorPolicy",
    "ALL_SCENARIOS",
    "DIRECT_STREAM",
    "AGENT_STREAM",
    "HELLO_PROMPT",
    "get_scenario",
]
