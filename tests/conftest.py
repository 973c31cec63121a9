"""Pytest configuration and fixtures for ux tests."""
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


def pytest_sessionfinish(session, exitstatus):
    """Check that coverage data was collected if --cov was requested.

    This prevents silent "no data collected" scenarios that produce 0% coverage
    without failing the test run.
    """
    cov_enabled = any("--cov" in str(arg) for arg in session.config.args)
    if not cov_enabled:
        return

    coverage_files = list(Path.cwd().glob(".coverage*"))
    if not coverage_files:
        pytest.exit(
            "Coverage was enabled but no data was collected. "
            "Check that tests import from 'ux' (the package) not 'src/ux' (filesystem path).",
            returncode=1,
        )


WriteTree = Callable[[dict[str, str]], Path]


@pytest.fixture
def write_tree(tmp_path: Path) -> WriteTree:
    """Write {relative_path: content} files under a workspace directory and return its root."""
    root = tmp_path / "ws"

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root.resolve()

    return _write


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("UX_LOG_ROOT", str(tmp_path / "ux-logs"))
    monkeypatch.delenv("UX_JOBS", raising=False)
    monkeypatch.delenv("UX_LOG_LEVEL", raising=False)
