"""
Provider-neutral stream events consumed by the harnesses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class EventKind(Enum):
    """Kinds of events in a unified model stream."""

    TEXT_DELTA = "text-delta"
    TEXT_END = "text-end"
    FINISH = "finish"
    OTHER = "other"


@dataclass(frozen=True)
class StreamEvent:
    """One event of a unified stream, tagged by kind."""

    kind: EventKind
    text: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: dict = field(default_factory=dict)

    @classmethod
    def text_delta(cls, text: str) -> "StreamEvent":
        return cls(EventKind.TEXT_DELTA, text=text)

    @classmethod
    def text_end(cls) -> "StreamEvent":
        return cls(EventKind.TEXT_END)

    @classmethod
    def finish(cls, finish_reason: Optional[str] = None, usage: Optional[dict] = None) -> "StreamEvent":
        return cls(EventKind.FINISH, finish_reason=finish_reason, usage=usage or {})
