"""
Direct stream harness - time between the last text delta and stream close.

Consumes the unified event stream of one model request and records when
the last text delta, the text-end event and the finish event arrive, then
how long the iterator takes to signal completion after the last text.
"""

import time
from typing import AsyncIterable, Awaitable, Callable, Optional

from instrumentation.timing import Clock, StreamDelayTimer
from providers.events import EventKind, StreamEvent
from scenarios.definitions import DIRECT_STREAM, Scenario

from .outcome import HarnessOutcome
from .reporter import ConsoleReporter


OpenStream = Callable[[], Awaitable[AsyncIterable[StreamEvent]]]

EVENT_LABELS = {
    EventKind.TEXT_END: "text-end",
    EventKind.FINISH: "finish",
}


async def run_direct_stream(
    open_stream: OpenStream,
    scenario: Scenario = DIRECT_STREAM,
    clock: Clock = time.perf_counter,
    reporter: Optional[ConsoleReporter] = None,
) -> HarnessOutcome:
    """Run one direct stream measurement.

    Errors from the request or from iteration are logged and returned in
    the outcome; no partial result is reported.
    """
    reporter = reporter or ConsoleReporter()
    reporter.line(f"\n=== {scenario.description} ({scenario.model}) ===\n")

    timer = StreamDelayTimer(scenario.name, clock=clock).start()

    try:
        stream = await open_stream()
        async for event in stream:
            now = clock()
            if event.kind is EventKind.TEXT_DELTA:
                timer.mark_text(at=now)
                if event.text:
                    reporter.write(event.text)
            elif event.kind in EVENT_LABELS:
                sample = timer.mark(EVENT_LABELS[event.kind], at=now)
                reporter.event_received(sample, timer.last_text_ms)
        timer.stop()
    except Exception as e:
        reporter.error(e)
        return HarnessOutcome(name=scenario.name, error=e)

    result = timer.to_result(model=scenario.model, provider=scenario.provider)
    reporter.direct_report(result, scenario.delay_threshold_ms)
    return HarnessOutcome(name=scenario.name, result=result)
