"""
Console reporting for stream delay runs.

Every line the harnesses print goes through ConsoleReporter so output
streams and colour can be swapped in tests.
"""

import sys
from typing import Optional, TextIO

from instrumentation.timing import RunResult, TimingSample


class ConsoleReporter:
    """Generates console/CLI reports."""

    def __init__(
        self,
        use_color: bool = True,
        out: Optional[TextIO] = None,
        err: Optional[TextIO] = None,
    ):
        self.use_color = use_color
        self._out = out
        self._err = err
        self._mid_line = False

    @property
    def out(self) -> TextIO:
        return self._out or sys.stdout

    @property
    def err(self) -> TextIO:
        return self._err or sys.stderr

    def _color(self, text: str, color: str) -> str:
        """Apply ANSI color if enabled."""
        if not self.use_color:
            return text

        colors = {
            "green": "\033[92m",
            "red": "\033[91m",
            "yellow": "\033[93m",
            "blue": "\033[94m",
            "bold": "\033[1m",
            "reset": "\033[0m",
        }

        return f"{colors.get(color, '')}{text}{colors['reset']}"

    def format_ms(self, ms: Optional[float]) -> str:
        """Format a millisecond value for display."""
        if ms is None:
            return "n/a"
        return f"{ms:.0f}ms"

    def format_offset(self, ms: Optional[float]) -> str:
        """Format an offset from the last text increment."""
        if ms is None:
            return "not received"
        return f"{ms:+.0f}ms after last text"

    def line(self, text: str = "") -> None:
        """Print a full line, ending any streamed text first."""
        if self._mid_line:
            print(file=self.out)
            self._mid_line = False
        print(text, file=self.out, flush=True)

    def write(self, text: str) -> None:
        """Write streamed text without a trailing newline."""
        self.out.write(text)
        self._mid_line = not text.endswith("\n")
        self.out.flush()

    def error(self, exc: BaseException) -> None:
        print(self._color(f"Error: {exc}", "red"), file=self.err, flush=True)

    # Direct stream

    def event_received(self, sample: TimingSample, last_text_ms: float) -> None:
        """Log a lifecycle event with its offsets from start and last text."""
        self.line(
            f"[{sample.label} event received at {self.format_ms(sample.at_ms)} "
            f"({self.format_offset(sample.at_ms - last_text_ms)})]"
        )

    def direct_report(self, result: RunResult, threshold_ms: float) -> None:
        """Timing analysis and summary for a direct stream run."""
        self.line("\n\n--- Timing Analysis ---")
        self.line(f"Last text-delta:  {self.format_ms(result.last_text_ms)}")
        for label in ("text-end", "finish"):
            self.line(
                f"{label + ' arrived:':<18}{self.format_ms(result.sample_ms(label))} "
                f"({self.format_offset(result.after_last_text_ms(label))})"
            )
        self.line(f"Stream closed:    {self.format_ms(result.end_ms)}")
        self.line(
            f"\nTotal delay after last text: {self.format_ms(result.delay_after_last_text_ms)}"
        )

        self.line(self._color("\n=== Summary ===", "bold"))
        self.line(f"Delay after last text chunk: {self.format_ms(result.delay_after_last_text_ms)}")
        if result.exceeds(threshold_ms):
            self.line(self._color(
                f"ISSUE CONFIRMED: {threshold_ms / 1000:g}+ second delay detected after the last text chunk",
                "red",
            ))
        else:
            self.line(self._color("No significant delay detected", "green"))

    # Agent stream

    def chunk(self, index: int, elapsed_ms: float, text: str) -> None:
        self.line(f'Chunk {index} ({self.format_ms(elapsed_ms)}): "{text}"')

    def agent_report(
        self,
        result: RunResult,
        threshold_ms: float,
        expected_close_ms: Optional[float] = None,
    ) -> None:
        """Results block for an agent stream run."""
        delay = result.delay_after_last_text_ms
        self.line("\n--- Results ---")
        self.line(f"Total chunks: {result.chunk_count}")
        self.line(f"Total time: {self.format_ms(result.total_ms)}")
        self.line(f"Last chunk at: {self.format_ms(result.last_text_ms)}")
        self.line(f"Iterator closed at: {self.format_ms(result.end_ms)}")
        self.line(f"Delay after last chunk: {self.format_ms(delay)}")

        if result.exceeds(threshold_ms):
            self.line(self._color(
                f"\nBUG CONFIRMED: Iterator took >{threshold_ms / 1000:g} second to close after last chunk",
                "red",
            ))
            if expected_close_ms is not None:
                self.line(f"Expected: Iterator should close within ~{self.format_ms(expected_close_ms)} of last chunk")
            self.line(f"Actual: Iterator took {self.format_ms(delay)} to close")

    # Repeated runs

    def summary(self, name: str, stats: dict) -> None:
        """Delay statistics over repeated runs."""
        self.line(self._color(f"\n{'=' * 60}", "blue"))
        self.line(self._color(f"Summary: {name} ({stats['count']} runs)", "bold"))
        self.line(self._color(f"{'=' * 60}", "blue"))
        self.line("Delay after last text:")
        self.line(f"  {'p50:':<8} {self.format_ms(stats['delay_p50_ms'])}")
        self.line(f"  {'p95:':<8} {self.format_ms(stats['delay_p95_ms'])}")
        self.line(f"  {'p99:':<8} {self.format_ms(stats['delay_p99_ms'])}")
        self.line(f"  {'Mean:':<8} {self.format_ms(stats['delay_mean_ms'])}")
        self.line(f"  {'Min:':<8} {self.format_ms(stats['delay_min_ms'])}")
        self.line(f"  {'Max:':<8} {self.format_ms(stats['delay_max_ms'])}")
        self.line(f"Total time p50: {self.format_ms(stats['total_p50_ms'])}")
