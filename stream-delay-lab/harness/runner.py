"""
Run orchestration for the stream delay harnesses.

Repeats a harness, traces each run, aggregates delays across runs and turns
outcomes into a process exit code according to the scenario's error policy.
"""

import asyncio
import sys
import time
from typing import Awaitable, Callable, Optional

from dotenv import load_dotenv

from instrumentation.timing import Clock, LatencyCollector
from instrumentation.traces import Tracer, init_tracing, shutdown_tracing
from scenarios.definitions import AGENT_STREAM, DIRECT_STREAM, Scenario

from .agent_stream import run_agent_stream
from .direct_stream import run_direct_stream
from .outcome import HarnessOutcome, exit_code
from .reporter import ConsoleReporter


HarnessFn = Callable[[Clock, ConsoleReporter], Awaitable[HarnessOutcome]]


async def run_scenario(
    scenario: Scenario,
    harness: HarnessFn,
    runs: int = 1,
    clock: Clock = time.perf_counter,
    reporter: Optional[ConsoleReporter] = None,
    tracer: Optional[Tracer] = None,
) -> int:
    """Run a harness `runs` times and return the process exit code.

    A failed run stops the loop when the scenario's policy fails the process.
    """
    if runs < 1:
        raise ValueError(f"runs must be at least 1, got {runs}")

    reporter = reporter or ConsoleReporter()
    tracer = tracer or init_tracing()
    collector = LatencyCollector()
    code = 0

    for i in range(runs):
        if runs > 1:
            reporter.line(f"\n--- Run {i + 1}/{runs} ---")

        attributes = {
            "scenario.name": scenario.name,
            "llm.model": scenario.model,
            "run.index": i,
        }
        async with tracer.async_span(scenario.name, attributes) as span:
            outcome = await harness(clock, reporter)
            if outcome.succeeded:
                tracer.record_result(span, outcome.result)
            else:
                span.set_attribute("run.error", str(outcome.error))

        if outcome.succeeded:
            collector.add(outcome.result)
            tracer.record_generation(scenario.name, scenario.model, scenario.prompt, outcome.result)

        code = max(code, exit_code(outcome, scenario.error_policy))
        if code != 0:
            break

    if collector.count > 1:
        reporter.summary(scenario.name, collector.stats())

    return code


async def run_direct(
    scenario: Scenario = DIRECT_STREAM,
    runs: int = 1,
    reporter: Optional[ConsoleReporter] = None,
) -> int:
    """Measure the direct model stream against the live provider."""
    from providers.anthropic_stream import create_client, stream_text

    async def harness(clock: Clock, reporter: ConsoleReporter) -> HarnessOutcome:
        async def open_stream():
            client = create_client(scenario.provider or "bedrock")
            return await stream_text(
                client,
                model=scenario.model,
                prompt=scenario.prompt,
                max_tokens=scenario.max_tokens,
            )

        return await run_direct_stream(open_stream, scenario, clock=clock, reporter=reporter)

    return await run_scenario(scenario, harness, runs=runs, reporter=reporter)


async def run_agent(
    scenario: Scenario = AGENT_STREAM,
    runs: int = 1,
    reporter: Optional[ConsoleReporter] = None,
) -> int:
    """Measure the agent wrapper stream against the live provider."""
    from providers.agent import Agent

    def agent_factory() -> Agent:
        return Agent(
            name=scenario.agent_name or scenario.name,
            instructions=scenario.instructions or "",
            model=scenario.model,
        )

    async def harness(clock: Clock, reporter: ConsoleReporter) -> HarnessOutcome:
        return await run_agent_stream(agent_factory, scenario, clock=clock, reporter=reporter)

    return await run_scenario(scenario, harness, runs=runs, reporter=reporter)


def _main(run: Callable[[], Awaitable[int]]) -> None:
    load_dotenv()
    try:
        code = asyncio.run(run())
    finally:
        shutdown_tracing()
    sys.exit(code)


def direct_main() -> None:
    """Entry point: direct stream reproduction with fixed inputs."""
    _main(run_direct)


def agent_main() -> None:
    """Entry point: agent stream reproduction with fixed inputs."""
    _main(run_agent)
