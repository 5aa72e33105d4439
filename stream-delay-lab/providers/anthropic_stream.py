"""
Direct model streaming over the Anthropic Messages API.

Wraps `client.messages.stream()` into a unified event sequence:

    text                          -> TEXT_DELTA
    content_block_stop (text)     -> TEXT_END
    message_stop                  -> FINISH
    anything else                 -> OTHER

The default provider is AWS Bedrock (`anthropic.AsyncAnthropicBedrock`),
which reads AWS credentials and region from the environment.
"""

from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Optional

import anthropic

from providers.events import EventKind, StreamEvent


PROVIDERS = ("bedrock", "anthropic")


def create_client(provider: str = "bedrock") -> Any:
    """Build the async SDK client for a provider name."""
    if provider == "bedrock":
        return anthropic.AsyncAnthropicBedrock()
    if provider == "anthropic":
        return anthropic.AsyncAnthropic()
    raise ValueError(f"Unknown provider: {provider} (expected one of {', '.join(PROVIDERS)})")


def _usage_dict(usage: Any) -> dict:
    if usage is None:
        return {}
    return {
        "input_tokens": getattr(usage, "input_tokens", 0) or 0,
        "output_tokens": getattr(usage, "output_tokens", 0) or 0,
    }


def to_stream_event(raw: Any) -> StreamEvent:
    """Classify one SDK stream event."""
    event_type = getattr(raw, "type", None)

    if event_type == "text":
        return StreamEvent.text_delta(getattr(raw, "text", "") or "")

    if event_type == "content_block_stop":
        block = getattr(raw, "content_block", None)
        # Tool use and thinking blocks also stop; only text blocks end text.
        if block is None or getattr(block, "type", "text") == "text":
            return StreamEvent.text_end()
        return StreamEvent(EventKind.OTHER)

    if event_type == "message_stop":
        message = getattr(raw, "message", None)
        return StreamEvent.finish(
            finish_reason=getattr(message, "stop_reason", None),
            usage=_usage_dict(getattr(message, "usage", None)),
        )

    return StreamEvent(EventKind.OTHER)


class FullStream:
    """Single-pass async iterable of StreamEvent over one open request.

    The underlying HTTP stream is closed when the sequence drains, when
    iteration fails, or on `aclose()`.
    """

    def __init__(self, stream: AsyncIterator[Any], stack: AsyncExitStack):
        self._stream = stream
        self._stack = stack
        self._consumed = False

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        if self._consumed:
            raise RuntimeError("FullStream can only be iterated once")
        self._consumed = True
        return self._events()

    async def _events(self) -> AsyncIterator[StreamEvent]:
        try:
            async for raw in self._stream:
                yield to_stream_event(raw)
        finally:
            await self._stack.aclose()

    async def aclose(self) -> None:
        await self._stack.aclose()


async def stream_text(
    client: Any,
    model: str,
    prompt: str,
    max_tokens: int = 256,
    system_prompt: Optional[str] = None,
) -> FullStream:
    """Issue one streaming request and return its unified event sequence.

    Suspends until the provider starts responding.
    """
    kwargs = {
        "model": model,
        "max_tokens": max_tokens,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system_prompt:
        kwargs["system"] = system_prompt

    stack = AsyncExitStack()
    try:
        stream = await stack.enter_async_context(client.messages.stream(**kwargs))
    except BaseException:
        await stack.aclose()
        raise
    return FullStream(stream, stack)
