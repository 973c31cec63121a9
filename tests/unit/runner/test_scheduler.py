"""Tests for parallel and serial scheduling."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest

from ux.errors import ConfigError, TaskArgumentsError
from ux.runner.scheduler import default_jobs, run_task
from ux.runner.types import ExecutionResult, exit_status
from ux.utils.repo_config import TaskConfig
from ux.workspace.types import Package


class RecordingSink:
    """Collects sink events for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple] = []
        self._lock = threading.Lock()

    def _record(self, *event: object) -> None:
        with self._lock:
            self.events.append(event)

    def begin(self, task: str, total: int, parallel: bool) -> None:
        self._record("begin", task, total, parallel)

    def started(self, label: str) -> None:
        self._record("started", label)

    def step(self, label: str, command: str) -> None:
        self._record("step", label, command)

    def output(self, label: str, text: str) -> None:
        self._record("output", label, text)

    def completed(self, result: ExecutionResult) -> None:
        self._record("completed", result.label, result.succeeded)

    def finish(self) -> None:
        self._record("finish")


def _packages(tmp_path: Path) -> list[Package]:
    steps = {
        "a": ("echo a-1", "echo a-2"),
        "b": ("echo b-out; echo b-err >&2; exit 3",),
        "c": ("sleep 0.2; echo c",),
        "d": ("echo d-1", "false", "echo never"),
    }
    packages = []
    for name, commands in steps.items():
        directory = tmp_path / name
        directory.mkdir()
        packages.append(
            Package(name=name, type=None, directory=directory, label=f"//{name}", tasks={"test": commands})
        )
    return packages


def _fields(results: list[ExecutionResult]) -> list[tuple]:
    return [(r.label, r.succeeded, r.failed_step, r.output) for r in results]


def test_parallel_and_serial_produce_identical_results(tmp_path: Path) -> None:
    packages = _packages(tmp_path)

    parallel = run_task("test", packages, TaskConfig(parallel=True))
    serial = run_task("test", packages, TaskConfig(parallel=False))

    assert _fields(parallel) == _fields(serial)
    assert _fields(serial) == [
        ("//a", True, "", "a-1\na-2\n"),
        ("//b", False, "echo b-out; echo b-err >&2; exit 3", "b-out\nb-err\n"),
        ("//c", True, "", "c\n"),
        ("//d", False, "false", "d-1\n"),
    ]


def test_results_keep_input_order_regardless_of_completion(tmp_path: Path) -> None:
    packages = _packages(tmp_path)

    results = run_task("test", packages, TaskConfig(parallel=True), jobs=4)

    assert [r.label for r in results] == ["//a", "//b", "//c", "//d"]


def test_single_worker_pool_still_runs_everything(tmp_path: Path) -> None:
    packages = _packages(tmp_path)

    results = run_task("test", packages, TaskConfig(parallel=True), jobs=1)

    assert len(results) == 4
    assert exit_status(results) == 1


def test_serial_streams_steps_and_output_in_order(tmp_path: Path) -> None:
    packages = _packages(tmp_path)[:1]
    sink = RecordingSink()

    run_task("test", packages, TaskConfig(parallel=False), sink=sink)

    assert sink.events[0] == ("begin", "test", 1, False)
    assert sink.events[1] == ("started", "//a")
    assert sink.events[2] == ("step", "//a", "echo a-1")
    streamed = "".join(e[2] for e in sink.events if e[0] == "output")
    assert streamed == "a-1\na-2\n"
    assert sink.events[-2] == ("completed", "//a", True)
    assert sink.events[-1] == ("finish",)


def test_parallel_does_not_stream_output(tmp_path: Path) -> None:
    sink = RecordingSink()

    run_task("test", _packages(tmp_path), TaskConfig(parallel=True), sink=sink)

    kinds = [e[0] for e in sink.events]
    assert "output" not in kinds
    assert "step" not in kinds
    assert kinds.count("started") == 4
    assert kinds.count("completed") == 4
    assert kinds[0] == "begin" and kinds[-1] == "finish"


def test_empty_package_list(tmp_path: Path) -> None:
    assert run_task("test", [], TaskConfig(parallel=True)) == []
    assert exit_status([]) == 0


def test_extra_args_for_multi_step_fail_before_running(tmp_path: Path) -> None:
    marker = tmp_path / "ran"
    pkg_dir = tmp_path / "p"
    pkg_dir.mkdir()
    pkg = Package(
        name="p",
        type=None,
        directory=pkg_dir,
        label="//p",
        tasks={"test": (f"touch {marker}", "true")},
    )
    sink = RecordingSink()

    with pytest.raises(TaskArgumentsError):
        run_task("test", [pkg], TaskConfig(), sink=sink, extra_args=["-x"])

    assert not marker.exists()
    assert sink.events == []


def test_exit_status_all_passed(tmp_path: Path) -> None:
    packages = _packages(tmp_path)[:1]

    assert exit_status(run_task("test", packages, TaskConfig())) == 0


def test_default_jobs_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UX_JOBS", "3")
    assert default_jobs() == 3


def test_default_jobs_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("UX_JOBS", raising=False)
    assert default_jobs() >= 2


@pytest.mark.parametrize("value", ["0", "many", "-2"])
def test_default_jobs_rejects_invalid_env(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("UX_JOBS", value)
    with pytest.raises(ConfigError, match="UX_JOBS"):
        default_jobs()
