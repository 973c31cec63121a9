"""Narrow a package set by label, by path relative to cwd, or by changed files."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from ux.errors import FilterError
from ux.git.diff import changed_files
from ux.workspace.types import Package

EVERYTHING = "//..."
RECURSIVE = "..."
THIS_DIR = "."


def resolve_filter(filter_expr: str, workspace_root: Path, cwd: Path | None = None) -> str:
    """Turn a filter expression into a canonical absolute label filter.

    Absolute filters (//a/b, //a/...) pass through. Relative ones are resolved
    against cwd: "." is the package at cwd, "..." everything at or below cwd,
    and a bare path such as "lib" or "lib/..." is joined onto cwd.

    Raises:
        FilterError: If the filter is empty or resolves outside the workspace
    """
    expr = filter_expr.strip()
    if not expr:
        raise FilterError("empty package filter")
    if expr.startswith("//"):
        return _normalize_label(expr)

    recursive = False
    rel = expr
    if rel == RECURSIVE:
        rel, recursive = THIS_DIR, True
    elif rel.endswith("/" + RECURSIVE):
        rel, recursive = rel[: -len(RECURSIVE) - 1], True

    root = workspace_root.resolve()
    target = Path(os.path.normpath((cwd or Path.cwd()).resolve() / rel))
    if target != root and root not in target.parents:
        raise FilterError(f"{filter_expr!r} resolves to {target}, outside workspace {root}")

    path = target.relative_to(root).as_posix()
    if path == ".":
        return EVERYTHING if recursive else "//"
    return f"//{path}/{RECURSIVE}" if recursive else f"//{path}"


def _normalize_label(label: str) -> str:
    path = label.removeprefix("//").strip("/")
    return f"//{path}"


def filter_by_label(packages: Sequence[Package], label_filter: str) -> list[Package]:
    """Keep packages matching an absolute label filter, preserving order.

    //... matches everything, //a/... matches //a and anything below it,
    anything else must match a label exactly.
    """
    path = label_filter.removeprefix("//")
    if path == RECURSIVE:
        return list(packages)

    if path.endswith("/" + RECURSIVE):
        prefix = path[: -len(RECURSIVE) - 1]
        return [p for p in packages if p.path == prefix or p.path.startswith(prefix + "/")]

    return [p for p in packages if p.path == path]


def filter_affected(
    workspace_root: Path,
    packages: Sequence[Package],
    base: str,
    *,
    diff: Callable[[Path, str], list[str]] = changed_files,
) -> list[Package]:
    """Keep packages containing at least one file changed relative to base.

    Raises:
        GitDiffError: If change detection fails
    """
    files = diff(workspace_root, base)
    if not files:
        return []
    return [p for p in packages if _contains_any(p, files)]


def _contains_any(package: Package, files: Iterable[str]) -> bool:
    if not package.path:
        return True
    prefix = package.path + "/"
    return any(f.startswith(prefix) for f in files)


def packages_with_task(packages: Iterable[Package], task: str) -> list[Package]:
    """Keep only packages that define the task."""
    return [p for p in packages if p.has_task(task)]
