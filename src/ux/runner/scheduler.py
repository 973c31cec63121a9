"""Run a task across packages under the parallel or serial policy."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from functools import partial

from ux.errors import ConfigError
from ux.runner.exec import check_extra_args, run_package_task
from ux.runner.sink import NullSink, StatusSink
from ux.runner.types import ExecutionResult
from ux.utils.repo_config import TaskConfig
from ux.workspace.types import Package

logger = logging.getLogger(__name__)

UX_JOBS_ENV = "UX_JOBS"


def default_jobs() -> int:
    """Worker count for parallel tasks: UX_JOBS if set, else twice the CPU count."""
    raw = os.getenv(UX_JOBS_ENV, "").strip()
    if raw:
        try:
            jobs = int(raw)
        except ValueError:
            raise ConfigError(f"{UX_JOBS_ENV} must be a positive integer, got {raw!r}") from None
        if jobs < 1:
            raise ConfigError(f"{UX_JOBS_ENV} must be a positive integer, got {raw!r}")
        return jobs
    return max(1, 2 * (os.cpu_count() or 1))


def run_task(
    task: str,
    packages: Sequence[Package],
    config: TaskConfig,
    *,
    sink: StatusSink | None = None,
    extra_args: Sequence[str] = (),
    jobs: int | None = None,
) -> list[ExecutionResult]:
    """Execute task for every package and return results in input order.

    A failing package never stops the others. Parallel tasks run on a bounded
    thread pool with output fully buffered per package; serial tasks run one
    package at a time and stream output to the sink as it is produced.

    Raises:
        TaskArgumentsError: If extra_args are given for a multi-step task
    """
    check_extra_args(packages, task, extra_args)
    sink = sink or NullSink()
    sink.begin(task, len(packages), config.parallel)
    try:
        if config.parallel:
            results = _run_parallel(task, packages, config, sink, extra_args, jobs)
        else:
            results = _run_serial(task, packages, config, sink, extra_args)
    finally:
        sink.finish()
    return results


def _run_parallel(
    task: str,
    packages: Sequence[Package],
    config: TaskConfig,
    sink: StatusSink,
    extra_args: Sequence[str],
    jobs: int | None,
) -> list[ExecutionResult]:
    if not packages:
        return []
    workers = min(jobs or default_jobs(), len(packages))
    logger.debug("running %s on %d packages with %d workers", task, len(packages), workers)

    def execute(pkg: Package) -> ExecutionResult:
        sink.started(pkg.label)
        result = run_package_task(pkg, task, extra_args=extra_args, timeout=config.timeout)
        sink.completed(result)
        return result

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ux") as pool:
        futures = [pool.submit(execute, pkg) for pkg in packages]
        return [fut.result() for fut in futures]


def _run_serial(
    task: str,
    packages: Sequence[Package],
    config: TaskConfig,
    sink: StatusSink,
    extra_args: Sequence[str],
) -> list[ExecutionResult]:
    results: list[ExecutionResult] = []
    for pkg in packages:
        sink.started(pkg.label)
        result = run_package_task(
            pkg,
            task,
            extra_args=extra_args,
            timeout=config.timeout,
            on_step=partial(sink.step, pkg.label),
            on_output=partial(sink.output, pkg.label),
        )
        sink.completed(result)
        results.append(result)
    return results
