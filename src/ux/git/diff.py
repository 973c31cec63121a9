"""Changed-file detection against a reference branch."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ux.errors import GitDiffError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitResult:
    """Result envelope for a git invocation."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str


def run_git(args: list[str], *, cwd: Path) -> GitResult:
    """Run git without raising and return its captured output."""
    argv = ["git", *args]
    try:
        completed = subprocess.run(argv, cwd=cwd, capture_output=True, text=True, check=False)
    except FileNotFoundError as exc:
        return GitResult(argv=tuple(argv), returncode=127, stdout="", stderr=str(exc))
    return GitResult(
        argv=tuple(argv),
        returncode=completed.returncode,
        stdout=completed.stdout,
        stderr=completed.stderr,
    )


def changed_files(workspace_root: Path, base: str) -> list[str]:
    """Return workspace-relative paths of files that differ from base.

    Compares against the merge base first (base...HEAD); if that fails, for
    example when history is shallow, retries a plain diff against base.

    Raises:
        GitDiffError: If both comparisons fail
    """
    result = run_git(["diff", "--name-only", "--relative", f"{base}...HEAD"], cwd=workspace_root)
    if result.returncode != 0:
        logger.info(
            "git diff against merge base failed (%s), retrying against %s",
            result.stderr.strip() or result.returncode,
            base,
        )
        result = run_git(["diff", "--name-only", "--relative", base], cwd=workspace_root)
        if result.returncode != 0:
            raise GitDiffError(result.argv, result.returncode, result.stderr)
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]
