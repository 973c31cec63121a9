"""Terminal rendering: live progress, streamed output and logging setup."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn
from rich.text import Text

from ux.obs.run_artifacts import fmt_duration
from ux.runner.stream import LinePrefixer
from ux.runner.types import ExecutionResult

UX_LOG_LEVEL_ENV = "UX_LOG_LEVEL"

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

STYLE_HEADER = "bold cyan"
STYLE_DIM = "bright_black"
STYLE_SUCCESS = "green"
STYLE_FAIL = "red"
STYLE_LABEL = "bright_cyan"

ICON_SUCCESS = Text("✓", style=STYLE_SUCCESS)
ICON_FAIL = Text("✗", style=STYLE_FAIL)
ICON_RUNNING = Text("●", style=STYLE_DIM)

OUTPUT_PREFIX = "    "
LABEL_WIDTH = 40
BAR_WIDTH = 30


def configure_logging(debug: bool = False) -> None:
    """Route diagnostics to stderr through rich at UX_LOG_LEVEL (default WARNING)."""
    level_name = "DEBUG" if debug else os.getenv(UX_LOG_LEVEL_ENV, "WARNING").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def result_line(result: ExecutionResult) -> Text:
    """"  ✓  //label    12ms" """
    line = Text("  ")
    line.append_text(ICON_SUCCESS if result.succeeded else ICON_FAIL)
    line.append("  ")
    line.append(f"{result.label:<{LABEL_WIDTH}}", style=STYLE_LABEL)
    line.append(" ")
    line.append(fmt_duration(result.duration), style=STYLE_DIM)
    return line


@dataclass
class ProgressState:
    """Aggregate counts shared by all workers; guarded by ConsoleSink's lock."""

    total: int = 0
    completed: int = 0
    failed: int = 0
    running: list[str] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return self.completed - self.failed

    def describe(self) -> str:
        """Counts and in-flight labels, e.g. "3 passed 1 failed  //a +2 more"."""
        parts = []
        if self.passed:
            parts.append(f"{self.passed} passed")
        if self.failed:
            parts.append(f"{self.failed} failed")
        text = " ".join(parts)
        if self.running:
            text += f"  {self.running[0]}"
            if len(self.running) > 1:
                text += f" +{len(self.running) - 1} more"
        return text


def make_progress(out: Console) -> Progress:
    """Single-line transient progress display, refreshed only when the sink asks."""
    return Progress(
        BarColumn(bar_width=BAR_WIDTH),
        MofNCompleteColumn(),
        TextColumn("{task.description}", markup=False),
        console=out,
        transient=True,
        auto_refresh=False,
        redirect_stdout=False,
        redirect_stderr=False,
    )


class ConsoleSink:
    """Renders execution events to a rich console.

    On an interactive terminal a rich progress line is kept below the output
    and redrawn in place; on anything else exactly one final status line is
    printed. Streamed command output is written to the console file untouched,
    so carriage returns and other control characters reach the terminal.
    """

    def __init__(self, out: Console | None = None) -> None:
        self.console = out or console
        self.interactive = self.console.is_interactive
        self.state = ProgressState()
        self.parallel = False
        self._lock = threading.Lock()
        self._prefixer = LinePrefixer(OUTPUT_PREFIX)
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None

    def begin(self, task: str, total: int, parallel: bool) -> None:
        with self._lock:
            self.state = ProgressState(total=total)
            self.parallel = parallel
            header = Text("\n")
            header.append(f"ux {task}", style=STYLE_HEADER)
            header.append("  ")
            mode = "parallel" if parallel else "serial"
            header.append(f"({total} packages, {mode})", style=STYLE_DIM)
            self.console.print(header)
            self.console.print()
            if self.interactive:
                self._progress = make_progress(self.console)
                self._task_id = self._progress.add_task("", total=total)

    def started(self, label: str) -> None:
        with self._lock:
            self.state.running.append(label)
            if not self.parallel:
                self._end_partial_line()
                line = Text("  ")
                line.append_text(ICON_RUNNING)
                line.append(f"  {label}")
                self.console.print(line)
                self._prefixer.reset()
            self._draw_status()

    def step(self, label: str, command: str) -> None:
        with self._lock:
            self._end_partial_line()
            self.console.print(Text(f"{OUTPUT_PREFIX}→ {command}", style=STYLE_DIM))
            self._draw_status()

    def output(self, label: str, text: str) -> None:
        with self._lock:
            self._hide_status()
            self._write_raw(self._prefixer.feed(text))
            if self._prefixer.at_line_start:
                self._draw_status()

    def completed(self, result: ExecutionResult) -> None:
        with self._lock:
            state = self.state
            state.completed += 1
            if not result.succeeded:
                state.failed += 1
            if result.label in state.running:
                state.running.remove(result.label)

            self._end_partial_line()
            self.console.print(result_line(result))
            if not self.parallel:
                self.console.print()
            if self.interactive:
                self._draw_status()
            elif state.completed == state.total:
                self.console.print(self._final_status())

    def finish(self) -> None:
        with self._lock:
            self._hide_status()
            self._progress = None
            self._task_id = None

    def _write_raw(self, text: str) -> None:
        if not text:
            return
        out = self.console.file
        out.write(text)
        out.flush()

    def _end_partial_line(self) -> None:
        # The progress line is hidden whenever a partial line is pending.
        if not self._prefixer.at_line_start:
            self._write_raw("\n")
            self._prefixer.reset()

    def _final_status(self) -> Text:
        state = self.state
        status = Text(f"  [{state.completed}/{state.total}]")
        if state.passed:
            status.append(f" {state.passed} passed", style=STYLE_SUCCESS)
        if state.failed:
            status.append(f" {state.failed} failed", style=STYLE_FAIL)
        return status

    def _draw_status(self) -> None:
        # Must be called with _lock held.
        if self._progress is None or self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            completed=self.state.completed,
            description=self.state.describe(),
        )
        if self._progress.live.is_started:
            self._progress.refresh()
        else:
            self._progress.start()

    def _hide_status(self) -> None:
        # Must be called with _lock held.
        if self._progress is not None and self._progress.live.is_started:
            self._progress.stop()
