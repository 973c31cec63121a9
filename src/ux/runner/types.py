"""Execution result types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ux.workspace.types import Package


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one task on one package.

    failed_step is the exact command string that failed and is empty on
    success. output holds everything every executed step wrote, stdout and
    stderr interleaved in the order written.
    """

    package: Package
    succeeded: bool
    duration: float  # seconds
    failed_step: str = ""
    output: str = ""

    @property
    def label(self) -> str:
        return self.package.label


def exit_status(results: Sequence[ExecutionResult]) -> int:
    """1 if any package failed, else 0 (including when nothing ran)."""
    return 0 if all(r.succeeded for r in results) else 1
