"""
Agent stream harness - time between the last text chunk and iterator close.
"""

import time
from typing import Any, Callable, Optional

from instrumentation.timing import Clock, StreamDelayTimer
from scenarios.definitions import AGENT_STREAM, Scenario

from .outcome import HarnessOutcome
from .reporter import ConsoleReporter


AgentFactory = Callable[[], Any]


async def run_agent_stream(
    agent_factory: AgentFactory,
    scenario: Scenario = AGENT_STREAM,
    clock: Clock = time.perf_counter,
    reporter: Optional[ConsoleReporter] = None,
) -> HarnessOutcome:
    """Run one agent stream measurement.

    `agent_factory` returns an object whose `stream(messages)` coroutine
    resolves to something exposing a `text_stream` async iterator. Only
    non-empty chunks are counted.
    """
    reporter = reporter or ConsoleReporter()

    try:
        agent = agent_factory()

        reporter.line("Starting stream...")
        timer = StreamDelayTimer(scenario.name, clock=clock).start()

        stream = await agent.stream([{"role": "user", "content": scenario.prompt}])

        reporter.line("\n--- Streaming chunks ---")
        async for chunk in stream.text_stream:
            if chunk:
                last_chunk_ms = timer.mark_text()
                reporter.chunk(timer.chunk_count, last_chunk_ms, chunk)
        timer.stop()
    except Exception as e:
        reporter.error(e)
        return HarnessOutcome(name=scenario.name, error=e)

    result = timer.to_result(model=scenario.model, agent=scenario.agent_name)
    reporter.agent_report(result, scenario.delay_threshold_ms, scenario.expected_close_ms)
    return HarnessOutcome(name=scenario.name, result=result)
