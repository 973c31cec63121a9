"""Task execution across packages."""

from ux.runner.exec import check_extra_args, run_package_task
from ux.runner.scheduler import default_jobs, run_task
from ux.runner.types import ExecutionResult

__all__ = [
    "ExecutionResult",
    "check_extra_args",
    "default_jobs",
    "run_package_task",
    "run_task",
]
