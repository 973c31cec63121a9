"""Workspace root detection and package type inference."""

from __future__ import annotations

import tomllib
from pathlib import Path

from ux.errors import WorkspaceNotFoundError
from ux.utils.repo_config import CONFIG_FILENAME

# Checked in order; the first marker present decides the package type.
MARKER_PRIORITY: tuple[tuple[str, str], ...] = (
    ("pyproject.toml", "python"),
    ("go.mod", "go"),
    ("Cargo.toml", "rust"),
    ("package.json", "node"),
)

# Pruned from recursive walks together with everything below them.
SKIP_DIRS = frozenset(
    {
        "node_modules",
        "vendor",
        "__pycache__",
        "venv",
        "dist",
        "build",
        "target",
    }
)


def find_workspace_root(start: Path | None = None) -> Path:
    """
    Find the workspace root.

    Walks upward from start (default: cwd) to the first directory whose
    ux.toml declares a [workspace] table. Package-level ux.toml files and
    unparseable files are passed over on the way up.

    Raises:
        WorkspaceNotFoundError: If the filesystem root is reached first
    """
    origin = (start or Path.cwd()).resolve()
    current = origin
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file() and _declares_workspace(candidate):
            return current

        parent = current.parent
        if parent == current:
            raise WorkspaceNotFoundError(
                f"no workspace root found above {origin} "
                f"(looking for {CONFIG_FILENAME} with [workspace])"
            )
        current = parent


def _declares_workspace(path: Path) -> bool:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("workspace"), dict)


def detect_project_type(directory: Path) -> str | None:
    """Return the type implied by the first marker file present, if any."""
    for marker_file, project_type in MARKER_PRIORITY:
        if (directory / marker_file).is_file():
            return project_type
    return None


def is_package_dir(directory: Path) -> bool:
    """True if the directory has its own ux.toml or a recognized marker file."""
    if (directory / CONFIG_FILENAME).is_file():
        return True
    return detect_project_type(directory) is not None


def is_skipped_dir_name(name: str) -> bool:
    """Hidden directories and dependency/build output directories are never walked."""
    return name.startswith(".") or name in SKIP_DIRS
