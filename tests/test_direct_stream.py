"""Tests for the direct stream harness."""

import pytest

from harness.direct_stream import run_direct_stream
from harness.outcome import exit_code
from providers.events import EventKind, StreamEvent
from scenarios import DIRECT_STREAM


def scripted_stream(clock, events, end_at):
    """Build an `open_stream` that emits each event at its scripted time."""

    async def events_gen():
        for at, event in events:
            clock.now = at
            yield event
        clock.now = end_at

    async def open_stream():
        return events_gen()

    return open_stream


def slow_close_events():
    return [
        (0.10, StreamEvent.text_delta("Hello")),
        (0.20, StreamEvent.text_delta(" there")),
        (0.25, StreamEvent(EventKind.OTHER)),
        (0.30, StreamEvent.text_end()),
        (3.10, StreamEvent.finish("end_turn", {"output_tokens": 3})),
    ]


@pytest.mark.asyncio
async def test_records_last_text_and_lifecycle_events(clock, reporter, capsys):
    open_stream = scripted_stream(clock, slow_close_events(), end_at=3.20)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.succeeded
    result = outcome.result
    assert result.last_text_ms == pytest.approx(200)
    assert result.sample_ms("text-end") == pytest.approx(300)
    assert result.sample_ms("finish") == pytest.approx(3100)
    assert result.after_last_text_ms("finish") == pytest.approx(2900)
    assert result.end_ms == pytest.approx(3200)
    assert result.delay_after_last_text_ms == pytest.approx(3000)

    out = capsys.readouterr().out
    assert "Hello there" in out
    assert "[text-end event received at 300ms (+100ms after last text)]" in out
    assert "[finish event received at 3100ms (+2900ms after last text)]" in out
    assert "Stream closed:    3200ms" in out
    assert "ISSUE CONFIRMED" in out
    assert "No significant delay detected" not in out


@pytest.mark.asyncio
async def test_empty_text_delta_still_moves_last_text(clock, reporter, capsys):
    events = [
        (0.10, StreamEvent.text_delta("Hi")),
        (0.40, StreamEvent.text_delta("")),
        (0.50, StreamEvent.finish()),
    ]
    open_stream = scripted_stream(clock, events, end_at=0.60)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.result.last_text_ms == pytest.approx(400)
    assert outcome.result.chunk_count == 2
    assert outcome.result.delay_after_last_text_ms == pytest.approx(200)


@pytest.mark.asyncio
async def test_fast_close_reports_no_issue(clock, reporter, capsys):
    events = [
        (0.10, StreamEvent.text_delta("Hello")),
        (0.15, StreamEvent.text_end()),
        (1.90, StreamEvent.finish()),
    ]
    open_stream = scripted_stream(clock, events, end_at=2.00)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.result.delay_after_last_text_ms == pytest.approx(1900)
    out = capsys.readouterr().out
    assert "No significant delay detected" in out
    assert "ISSUE CONFIRMED" not in out


@pytest.mark.asyncio
async def test_gap_of_exactly_threshold_is_an_issue(clock, reporter, capsys):
    events = [
        (0.5, StreamEvent.text_delta("Hello")),
        (2.5, StreamEvent.finish()),
    ]
    open_stream = scripted_stream(clock, events, end_at=2.5)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.result.delay_after_last_text_ms == pytest.approx(2000)
    assert "ISSUE CONFIRMED" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_no_text_uses_run_start(clock, reporter, capsys):
    open_stream = scripted_stream(clock, [(0.2, StreamEvent.finish())], end_at=0.3)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.result.last_text_ms == 0
    assert outcome.result.chunk_count == 0
    assert outcome.result.delay_after_last_text_ms == pytest.approx(300)
    assert "text-end arrived: n/a (not received)" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_iteration_failure_fails_the_process(clock, reporter, capsys):
    async def failing_gen():
        clock.now = 0.1
        yield StreamEvent.text_delta("Hel")
        raise ConnectionError("stream reset")

    async def open_stream():
        return failing_gen()

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert not outcome.succeeded
    assert outcome.result is None
    assert isinstance(outcome.error, ConnectionError)
    assert exit_code(outcome, DIRECT_STREAM.error_policy) == 1

    captured = capsys.readouterr()
    assert "Error: stream reset" in captured.err
    assert "Timing Analysis" not in captured.out


@pytest.mark.asyncio
async def test_request_failure_fails_the_process(clock, reporter, capsys):
    async def open_stream():
        raise PermissionError("no credentials")

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert exit_code(outcome, DIRECT_STREAM.error_policy) == 1
    assert "Error: no credentials" in capsys.readouterr().err


@pytest.mark.asyncio
async def test_only_first_event_line_breaks_streamed_text(clock, reporter, capsys):
    open_stream = scripted_stream(clock, slow_close_events(), end_at=3.20)

    await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    out = capsys.readouterr().out
    assert "Hello there\n[text-end event received" in out
    assert "(+100ms after last text)]\n[finish event received" in out


@pytest.mark.asyncio
async def test_text_after_text_end_reports_negative_offset(clock, reporter, capsys):
    events = [
        (0.10, StreamEvent.text_delta("Hello")),
        (0.30, StreamEvent.text_end()),
        (0.40, StreamEvent.text_delta(" again")),
        (0.50, StreamEvent.finish()),
    ]
    open_stream = scripted_stream(clock, events, end_at=0.60)

    outcome = await run_direct_stream(open_stream, DIRECT_STREAM, clock=clock, reporter=reporter)

    assert outcome.result.after_last_text_ms("text-end") == pytest.approx(-100)
    out = capsys.readouterr().out
    assert "text-end arrived: 300ms (-100ms after last text)" in out
    assert "+-" not in out
