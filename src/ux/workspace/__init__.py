"""Package discovery, task resolution and filtering."""

from ux.workspace.discover import discover_packages, resolve_package
from ux.workspace.filters import (
    filter_affected,
    filter_by_label,
    packages_with_task,
    resolve_filter,
)
from ux.workspace.types import Package, TaskOrigin

__all__ = [
    "Package",
    "TaskOrigin",
    "discover_packages",
    "filter_affected",
    "filter_by_label",
    "packages_with_task",
    "resolve_filter",
    "resolve_package",
]
