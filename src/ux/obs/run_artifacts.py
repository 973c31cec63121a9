"""Failure log artifacts written for packages whose task failed."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from ux.runner.types import ExecutionResult

logger = logging.getLogger(__name__)

UX_LOG_ROOT_ENV = "UX_LOG_ROOT"
TOOL_NAME = "ux"


def get_log_root(cli_log_root: Path | None = None) -> Path:
    """Resolve the failure-log root: explicit path > UX_LOG_ROOT > <tempdir>/ux."""
    if cli_log_root is not None:
        return cli_log_root.expanduser()

    env_root = os.getenv(UX_LOG_ROOT_ENV, "").strip()
    if env_root:
        return Path(env_root).expanduser()

    return Path(tempfile.gettempdir()) / TOOL_NAME


def flatten_label(label: str) -> str:
    """//packages/ingest -> packages-ingest"""
    name = label.removeprefix("//").strip("/").replace("/", "-")
    return name or "root"


def failure_log_path(task: str, label: str, log_root: Path | None = None) -> Path:
    return get_log_root(log_root) / task / f"{flatten_label(label)}.log"


def fmt_duration(seconds: float) -> str:
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    return f"{seconds:.1f}s"


def render_failure_log(task: str, result: ExecutionResult) -> str:
    lines = [
        f"{TOOL_NAME} {task} {result.label}",
        f"dir: {result.package.directory}",
    ]
    if result.failed_step:
        lines.append(f"failed step: {result.failed_step}")
    lines.append(f"duration: {fmt_duration(result.duration)}")
    lines.extend(["", "--- output ---", "", ""])
    return "\n".join(lines) + result.output


def write_failure_log(
    task: str,
    result: ExecutionResult,
    log_root: Path | None = None,
) -> Path | None:
    """Write the failure log for a result; returns None if it could not be written."""
    path = failure_log_path(task, result.label, log_root)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_failure_log(task, result), encoding="utf-8")
    except OSError as exc:
        logger.warning("could not write failure log %s: %s", path, exc)
        return None
    return path
