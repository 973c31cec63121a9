"""Workspace package types."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

TaskOrigin = Literal["default", "override"]


@dataclass(frozen=True)
class Package:
    """A workspace member with its resolved task table."""

    name: str
    type: str | None
    directory: Path
    label: str  # e.g. //packages/ingest
    tasks: dict[str, tuple[str, ...]] = field(default_factory=dict)
    task_origin: dict[str, TaskOrigin] = field(default_factory=dict)

    def commands(self, task: str) -> tuple[str, ...]:
        """Return the command list for a task (empty if undefined)."""
        return self.tasks.get(task, ())

    def has_task(self, task: str) -> bool:
        return task in self.tasks

    @property
    def path(self) -> str:
        """Root-relative forward-slash path, i.e. the label without //."""
        return self.label.removeprefix("//")


def make_label(workspace_root: Path, directory: Path) -> str:
    """Build the canonical //relative/path label for a directory under the root."""
    rel = directory.relative_to(workspace_root).as_posix()
    if rel == ".":
        return "//"
    return f"//{rel}"
