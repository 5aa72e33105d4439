#!/usr/bin/env python3
"""
Stream Delay Lab - Main entry point for the stream close delay reproductions.

Usage:
    python main.py [command] [options]

Commands:
    direct  - Model SDK stream: delay between last text delta and stream close
    agent   - Agent wrapper stream: delay between last chunk and iterator close
    all     - Run both reproductions
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add stream-delay-lab to path for package imports
sys.path.insert(0, str(Path(__file__).parent / "stream-delay-lab"))


def positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


async def run_direct_command(args, reporter) -> int:
    """Run the direct stream reproduction."""
    from harness.runner import run_direct
    from scenarios import DIRECT_STREAM

    scenario = DIRECT_STREAM.with_overrides(
        model=args.model,
        prompt=args.prompt,
        provider=args.provider,
    )
    return await run_direct(scenario, runs=args.runs, reporter=reporter)


async def run_agent_command(args, reporter) -> int:
    """Run the agent stream reproduction."""
    from harness.runner import run_agent
    from scenarios import AGENT_STREAM

    scenario = AGENT_STREAM.with_overrides(model=args.model, prompt=args.prompt)
    return await run_agent(scenario, runs=args.runs, reporter=reporter)


async def run_all_command(args, reporter) -> int:
    """Run both reproductions."""
    print("=" * 70)
    print("STREAM DELAY LAB - ALL REPRODUCTIONS")
    print("=" * 70)

    print("\n[1/2] DIRECT STREAM")
    direct_code = await run_direct_command(args, reporter)

    print("\n[2/2] AGENT STREAM")
    agent_code = await run_agent_command(args, reporter)

    return max(direct_code, agent_code)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Stream Delay Lab - Reproduce slow stream close after the last text chunk",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py direct
    python main.py direct --provider anthropic --model claude-haiku-4-5
    python main.py agent --runs 5
    python main.py all
        """,
    )

    parser.add_argument(
        "command",
        choices=["direct", "agent", "all"],
        help="Reproduction to run",
    )
    parser.add_argument(
        "--model",
        default=None,
        help="Override the scenario's model identifier",
    )
    parser.add_argument(
        "--prompt",
        default=None,
        help="Override the scenario's user prompt",
    )
    parser.add_argument(
        "--provider",
        choices=["bedrock", "anthropic"],
        default=None,
        help="Provider for the direct stream (default: bedrock)",
    )
    parser.add_argument(
        "--runs",
        type=positive_int,
        default=1,
        help="Number of runs per reproduction (default: 1)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI colours in the report",
    )

    return parser


def main():
    args = build_parser().parse_args()

    from harness.reporter import ConsoleReporter
    from instrumentation.traces import shutdown_tracing

    reporter = ConsoleReporter(use_color=not args.no_color)

    # Map commands to functions
    commands = {
        "direct": run_direct_command,
        "agent": run_agent_command,
        "all": run_all_command,
    }

    # Exit codes come from each scenario's error policy
    try:
        code = asyncio.run(commands[args.command](args, reporter))
    except KeyboardInterrupt:
        print("\nReproduction interrupted by user")
        sys.exit(1)
    finally:
        shutdown_tracing()

    sys.exit(code)


if __name__ == "__main__":
    main()
