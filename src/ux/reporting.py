"""Final summary and package listing."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.text import Text

from ux.obs.run_artifacts import write_failure_log
from ux.runner.types import ExecutionResult, exit_status
from ux.ui import (
    LABEL_WIDTH,
    OUTPUT_PREFIX,
    STYLE_DIM,
    STYLE_FAIL,
    STYLE_HEADER,
    STYLE_SUCCESS,
    console,
    result_line,
)
from ux.workspace.types import Package


@dataclass(frozen=True)
class Summary:
    """Counts and failure log locations for a finished run."""

    passed: int
    failed: int
    log_paths: dict[str, Path | None]
    exit_code: int


def print_summary(
    task: str,
    results: Sequence[ExecutionResult],
    *,
    verbose: bool = False,
    log_root: Path | None = None,
    out: Console | None = None,
) -> Summary:
    """Print the label-sorted results table and write a log for each failure.

    With verbose, the captured output of every failed package is printed inline.
    """
    out = out or console
    ordered = sorted(results, key=lambda r: r.label)
    failures = [r for r in ordered if not r.succeeded]
    passed = len(ordered) - len(failures)

    out.print()
    out.print(Text("  Results", style="bold"))
    out.print()
    for r in ordered:
        out.print(result_line(r))

    log_paths: dict[str, Path | None] = {}
    if failures:
        out.print()
    for r in failures:
        log_path = write_failure_log(task, r, log_root)
        log_paths[r.label] = log_path

        header = Text("  ")
        header.append("FAIL", style=f"bold {STYLE_FAIL}")
        header.append(f" {r.label}")
        out.print(header)
        if r.failed_step:
            out.print(Text(f"{OUTPUT_PREFIX}→ {r.failed_step}", style=STYLE_DIM))
        if verbose and r.output:
            out.print()
            for line in r.output.rstrip("\n").split("\n"):
                out.out(f"{OUTPUT_PREFIX}{line}", highlight=False)
            out.print()
        if log_path is not None:
            out.print(Text(f"{OUTPUT_PREFIX}log: {log_path}", style=STYLE_DIM))
        else:
            out.print(Text(f"{OUTPUT_PREFIX}log: not written", style=STYLE_DIM))

    final = Text("\n  ")
    final.append(f"{task}:", style="bold")
    final.append(f"  {passed} passed", style=STYLE_SUCCESS)
    if failures:
        final.append(f", {len(failures)} failed", style=STYLE_FAIL)
    out.print(final)
    out.print()

    return Summary(
        passed=passed,
        failed=len(failures),
        log_paths=log_paths,
        exit_code=exit_status(ordered),
    )


def print_package_list(packages: Sequence[Package], *, out: Console | None = None) -> None:
    """Print discovered packages with their tasks; inherited tasks are marked (default)."""
    out = out or console
    out.print()
    out.print(Text("Workspace packages", style=STYLE_HEADER))
    out.print()
    if not packages:
        out.print(Text("  no packages found", style=STYLE_DIM))
    for pkg in packages:
        line = Text(f"  {pkg.label:<{LABEL_WIDTH}} ")
        line.append(f"({pkg.name})", style=STYLE_DIM)
        if pkg.type:
            line.append(f" {pkg.type}", style="cyan")
        out.print(line)

        for task in sorted(pkg.tasks):
            commands = pkg.tasks[task]
            row = Text(OUTPUT_PREFIX)
            row.append(f"{task:<12}", style=STYLE_SUCCESS)
            if len(commands) == 1:
                row.append(f" {commands[0]}")
            else:
                row.append(f" [{len(commands)} steps]")
            if pkg.task_origin.get(task) == "default":
                row.append(" (default)", style=STYLE_DIM)
            out.print(row)
    out.print()
