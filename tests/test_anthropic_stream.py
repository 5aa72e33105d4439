"""Tests for the Anthropic Messages stream adapter."""

from types import SimpleNamespace

import pytest

from providers import anthropic_stream
from providers.anthropic_stream import create_client, stream_text, to_stream_event
from providers.events import EventKind


class FakeMessageStream:
    """Async context manager standing in for `client.messages.stream()`."""

    def __init__(self, events, fail_after=None):
        self.events = events
        self.fail_after = fail_after
        self.entered = False
        self.closed = False

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    async def _iter(self):
        for i, event in enumerate(self.events):
            if self.fail_after is not None and i == self.fail_after:
                raise ConnectionError("connection dropped")
            yield event

    def __aiter__(self):
        return self._iter()


class FakeClient:
    def __init__(self, stream):
        self.kwargs = None
        self.messages = SimpleNamespace(stream=self._stream)
        self._fake = stream

    def _stream(self, **kwargs):
        self.kwargs = kwargs
        return self._fake


def sdk_events():
    return [
        SimpleNamespace(type="message_start"),
        SimpleNamespace(type="content_block_start"),
        SimpleNamespace(type="content_block_delta"),
        SimpleNamespace(type="text", text="Hello", snapshot="Hello"),
        SimpleNamespace(type="content_block_stop", content_block=SimpleNamespace(type="text")),
        SimpleNamespace(type="message_delta"),
        SimpleNamespace(
            type="message_stop",
            message=SimpleNamespace(
                stop_reason="end_turn",
                usage=SimpleNamespace(input_tokens=12, output_tokens=4),
            ),
        ),
    ]


def test_to_stream_event_classifies_sdk_events():
    kinds = [to_stream_event(e).kind for e in sdk_events()]
    assert kinds == [
        EventKind.OTHER,
        EventKind.OTHER,
        EventKind.OTHER,
        EventKind.TEXT_DELTA,
        EventKind.TEXT_END,
        EventKind.OTHER,
        EventKind.FINISH,
    ]


def test_finish_event_carries_reason_and_usage():
    event = to_stream_event(sdk_events()[-1])
    assert event.finish_reason == "end_turn"
    assert event.usage == {"input_tokens": 12, "output_tokens": 4}


def test_non_text_block_stop_is_not_text_end():
    raw = SimpleNamespace(type="content_block_stop", content_block=SimpleNamespace(type="tool_use"))
    assert to_stream_event(raw).kind is EventKind.OTHER


def test_text_event_payload():
    event = to_stream_event(SimpleNamespace(type="text", text="abc"))
    assert event.kind is EventKind.TEXT_DELTA
    assert event.text == "abc"


@pytest.mark.asyncio
async def test_stream_text_issues_request_and_closes_when_drained():
    fake = FakeMessageStream(sdk_events())
    client = FakeClient(fake)

    stream = await stream_text(client, model="m", prompt="Say hi", max_tokens=50)

    assert fake.entered
    assert client.kwargs == {
        "model": "m",
        "max_tokens": 50,
        "messages": [{"role": "user", "content": "Say hi"}],
    }

    texts = [e.text async for e in stream if e.kind is EventKind.TEXT_DELTA]
    assert texts == ["Hello"]
    assert fake.closed


@pytest.mark.asyncio
async def test_stream_text_is_single_pass():
    stream = await stream_text(FakeClient(FakeMessageStream([])), model="m", prompt="p")
    async for _ in stream:
        pass
    with pytest.raises(RuntimeError):
        async for _ in stream:
            pass


@pytest.mark.asyncio
async def test_stream_text_closes_on_iteration_failure():
    fake = FakeMessageStream(sdk_events(), fail_after=2)
    stream = await stream_text(FakeClient(fake), model="m", prompt="p")

    with pytest.raises(ConnectionError):
        async for _ in stream:
            pass
    assert fake.closed


@pytest.mark.asyncio
async def test_stream_text_passes_system_prompt():
    client = FakeClient(FakeMessageStream([]))
    await stream_text(client, model="m", prompt="p", system_prompt="Be brief.")
    assert client.kwargs["system"] == "Be brief."


def test_create_client_selects_provider(monkeypatch):
    monkeypatch.setattr(anthropic_stream.anthropic, "AsyncAnthropicBedrock", lambda: "bedrock-client")
    monkeypatch.setattr(anthropic_stream.anthropic, "AsyncAnthropic", lambda: "anthropic-client")

    assert create_client("bedrock") == "bedrock-client"
    assert create_client("anthropic") == "anthropic-client"
    with pytest.raises(ValueError):
        create_client("vertex")
