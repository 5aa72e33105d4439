"""
Streaming clients measured by the harnesses.

- events: provider-neutral stream events
- anthropic_stream: direct Messages API streaming (Bedrock or Anthropic)
- agent: agent wrapper streaming plain-text increments
"""

from .events import EventKind, StreamEvent

__all__ = [
    "EventKind",
    "StreamEvent",
]
