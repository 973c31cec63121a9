"""Error types raised by ux."""

from __future__ import annotations

from pathlib import Path


class UxError(RuntimeError):
    """Base class for fatal, user-facing errors."""


class ConfigError(UxError):
    """Raised when a ux.toml file is missing, malformed, or structurally invalid."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class WorkspaceNotFoundError(ConfigError):
    """Raised when no workspace root ux.toml can be located."""


class FilterError(UxError):
    """Raised when a label or path filter cannot be resolved."""


class TaskArgumentsError(UxError):
    """Raised when trailing arguments are given for a multi-step task."""


class GitDiffError(UxError):
    """Raised when change detection fails even after the simplified retry."""

    def __init__(self, argv: tuple[str, ...], returncode: int, stderr: str) -> None:
        rendered = " ".join(argv)
        detail = stderr.strip()
        message = f"command failed ({returncode}): {rendered}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.argv = argv
        self.returncode = returncode
        self.stderr = stderr
