"""Discover workspace packages and resolve their task tables.

Members declared in the root ux.toml are either exact labels (//tools/cli)
or recursive patterns (//packages/...). A directory qualifies as a package
when it carries its own ux.toml or a recognized marker file. Its tasks are the
defaults registered for its type, overlaid with whatever its ux.toml declares.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ux.errors import ConfigError
from ux.utils.repo import detect_project_type, is_package_dir, is_skipped_dir_name
from ux.utils.repo_config import (
    CONFIG_FILENAME,
    RootConfig,
    TaskCommands,
    load_package_config,
)
from ux.workspace.types import Package, TaskOrigin, make_label

logger = logging.getLogger(__name__)

RECURSIVE_SUFFIX = "..."


def split_member(member: str) -> tuple[str, bool]:
    """Split a member pattern into its root-relative base path and recursive flag.

    >>> split_member("//packages/...")
    ('packages', True)
    >>> split_member("//tools/cli")
    ('tools/cli', False)
    """
    path = member.strip().removeprefix("//").strip("/")
    if path == RECURSIVE_SUFFIX:
        return "", True
    if path.endswith("/" + RECURSIVE_SUFFIX):
        return path[: -len(RECURSIVE_SUFFIX) - 1], True
    return path, False


def discover_packages(workspace_root: Path, config: RootConfig) -> list[Package]:
    """Resolve every workspace member into packages, sorted by label.

    Raises:
        ConfigError: If any package ux.toml is malformed
    """
    root = workspace_root.resolve()
    packages: list[Package] = []
    seen: set[Path] = set()

    def accept(directory: Path) -> None:
        if directory in seen or not is_package_dir(directory):
            return
        seen.add(directory)
        pkg = resolve_package(root, directory, config.defaults)
        if pkg is not None:
            packages.append(pkg)

    for member in config.workspace.members:
        rel, recursive = split_member(member)
        base = Path(os.path.normpath(root / rel)) if rel else root
        if base != root and root not in base.parents:
            raise ConfigError(
                f"workspace member {member} points outside the workspace",
                root / CONFIG_FILENAME,
            )
        if recursive:
            if base != root and is_skipped_dir_name(base.name):
                logger.debug("workspace member %s is a skipped directory, not walking it", member)
                continue
            for directory in _walk_dirs(base):
                if directory == root or directory == base:
                    continue
                accept(directory)
        elif base.is_dir():
            accept(base)
        else:
            logger.debug("workspace member %s does not exist, skipping", member)

    packages.sort(key=lambda p: p.label)
    return packages


def _walk_dirs(base: Path):
    """Yield every directory below base, pruning hidden and junk directories."""

    def on_error(exc: OSError) -> None:
        logger.debug("skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, _filenames in os.walk(base, onerror=on_error):
        dirnames[:] = sorted(d for d in dirnames if not is_skipped_dir_name(d))
        yield Path(dirpath)


def resolve_package(
    workspace_root: Path,
    directory: Path,
    defaults: dict[str, dict[str, TaskCommands]],
) -> Package | None:
    """Load a package, merging type defaults with its per-package overrides.

    Resolution order (highest priority first):
      1. Tasks declared in the package's own ux.toml
      2. Defaults registered for the package type in the root ux.toml

    The type is the one declared in the package's ux.toml, else the first
    marker file found. Returns None when nothing runnable resolves.
    """
    override = load_package_config(directory)

    name = override.name if override and override.name else directory.name
    pkg_type = (override.type if override else None) or detect_project_type(directory)
    override_tasks = override.tasks if override else {}

    if pkg_type is None and not override_tasks:
        return None

    tasks: dict[str, tuple[str, ...]] = {}
    origin: dict[str, TaskOrigin] = {}
    if pkg_type is not None:
        for task, commands in defaults.get(pkg_type, {}).items():
            tasks[task] = commands
            origin[task] = "default"
    for task, commands in override_tasks.items():
        tasks[task] = commands
        origin[task] = "override"

    if not tasks:
        return None

    return Package(
        name=name,
        type=pkg_type,
        directory=directory,
        label=make_label(workspace_root, directory),
        tasks=tasks,
        task_origin=origin,
    )
