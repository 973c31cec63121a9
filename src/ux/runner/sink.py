"""Status sink interface between the scheduler and whatever renders progress."""

from __future__ import annotations

from typing import Protocol

from ux.runner.types import ExecutionResult


class StatusSink(Protocol):
    """Receives execution events. Called from worker threads in parallel mode."""

    def begin(self, task: str, total: int, parallel: bool) -> None: ...

    def started(self, label: str) -> None: ...

    def step(self, label: str, command: str) -> None: ...

    def output(self, label: str, text: str) -> None: ...

    def completed(self, result: ExecutionResult) -> None: ...

    def finish(self) -> None: ...


class NullSink:
    """Discards every event."""

    def begin(self, task: str, total: int, parallel: bool) -> None:
        pass

    def started(self, label: str) -> None:
        pass

    def step(self, label: str, command: str) -> None:
        pass

    def output(self, label: str, text: str) -> None:
        pass

    def completed(self, result: ExecutionResult) -> None:
        pass

    def finish(self) -> None:
        pass
