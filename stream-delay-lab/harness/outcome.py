"""
Harness outcomes and their mapping to process exit codes.
"""

from dataclasses import dataclass
from typing import Optional

from instrumentation.timing import RunResult
from scenarios.definitions import ErrorPolicy


@dataclass
class HarnessOutcome:
    """Result of one harness invocation: timings on success, the error otherwise."""

    name: str
    result: Optional[RunResult] = None
    error: Optional[BaseException] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


def exit_code(outcome: HarnessOutcome, policy: ErrorPolicy) -> int:
    """Process exit status for an outcome under a policy."""
    if outcome.succeeded:
        return 0
    if policy is ErrorPolicy.FAIL_PROCESS:
        return 1
    return 0
