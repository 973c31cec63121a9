"""Workspace configuration loader.

Reads the root ux.toml (workspace members, per-task execution settings and
per-type default task tables) and the optional per-package ux.toml overrides.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ux.errors import ConfigError

CONFIG_FILENAME = "ux.toml"
DEFAULT_BASE_REF = "origin/main"

TaskCommands = tuple[str, ...]


@dataclass(frozen=True)
class TaskConfig:
    """Execution policy for one task name."""

    parallel: bool = False
    timeout: float | None = None  # seconds; None blocks until the command exits


@dataclass(frozen=True)
class WorkspaceConfig:
    """The [workspace] table of the root ux.toml."""

    members: tuple[str, ...] = ()
    base: str = DEFAULT_BASE_REF


@dataclass(frozen=True)
class RootConfig:
    """Parsed root ux.toml."""

    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)
    tasks: dict[str, TaskConfig] = field(default_factory=dict)
    defaults: dict[str, dict[str, TaskCommands]] = field(default_factory=dict)

    def task_config(self, task: str) -> TaskConfig:
        """Return the policy for a task, serial when not configured."""
        return self.tasks.get(task, TaskConfig())

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, path: Path | None = None) -> RootConfig:
        """Parse and validate a root config mapping."""
        workspace_data = _table(data, "workspace", path)
        members = workspace_data.get("members", [])
        if not isinstance(members, list) or not all(isinstance(m, str) for m in members):
            raise ConfigError("workspace.members must be a list of strings", path)
        base = workspace_data.get("base", DEFAULT_BASE_REF)
        if not isinstance(base, str) or not base.strip():
            raise ConfigError("workspace.base must be a non-empty string", path)

        tasks: dict[str, TaskConfig] = {}
        for name, raw in _table(data, "tasks", path).items():
            if not isinstance(raw, dict):
                raise ConfigError(f"tasks.{name} must be a table", path)
            parallel = raw.get("parallel", False)
            if not isinstance(parallel, bool):
                raise ConfigError(f"tasks.{name}.parallel must be true or false", path)
            timeout = raw.get("timeout")
            if timeout is not None:
                if isinstance(timeout, bool) or not isinstance(timeout, int | float) or timeout <= 0:
                    raise ConfigError(f"tasks.{name}.timeout must be a positive number", path)
                timeout = float(timeout)
            tasks[name] = TaskConfig(parallel=parallel, timeout=timeout)

        defaults: dict[str, dict[str, TaskCommands]] = {}
        for type_name, raw in _table(data, "defaults", path).items():
            if not isinstance(raw, dict):
                raise ConfigError(f"defaults.{type_name} must be a table", path)
            defaults[type_name] = parse_tasks(
                _table(raw, "tasks", path, prefix=f"defaults.{type_name}."),
                path=path,
                prefix=f"defaults.{type_name}.tasks.",
            )

        return cls(
            workspace=WorkspaceConfig(members=tuple(members), base=base.strip()),
            tasks=tasks,
            defaults=defaults,
        )


@dataclass(frozen=True)
class PackageConfig:
    """Parsed per-package ux.toml override."""

    name: str | None = None
    type: str | None = None
    tasks: dict[str, TaskCommands] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, path: Path | None = None) -> PackageConfig:
        """Parse and validate a package config mapping."""
        package_data = _table(data, "package", path)
        name = package_data.get("name")
        pkg_type = package_data.get("type")
        for key, value in (("name", name), ("type", pkg_type)):
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"package.{key} must be a string", path)
        return cls(
            name=name or None,
            type=pkg_type or None,
            tasks=parse_tasks(_table(data, "tasks", path), path=path, prefix="tasks."),
        )


def parse_tasks(
    raw: dict[str, Any],
    *,
    path: Path | None = None,
    prefix: str = "",
) -> dict[str, TaskCommands]:
    """Normalize task values into command tuples.

    A string becomes a one-step task; a list of strings becomes a multi-step
    task run in the given order.

    Raises:
        ConfigError: If a value is neither a string nor a non-empty list of strings
    """
    tasks: dict[str, TaskCommands] = {}
    for name, value in raw.items():
        if isinstance(value, str):
            tasks[name] = (value,)
        elif isinstance(value, list) and value and all(isinstance(v, str) for v in value):
            tasks[name] = tuple(value)
        else:
            raise ConfigError(
                f"{prefix}{name} must be a command string or a non-empty list of command strings",
                path,
            )
    return tasks


def read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file into a mapping.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"malformed TOML: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"cannot read config: {e.strerror or e}", path) from e


def load_root_config(workspace_root: Path) -> RootConfig:
    """Load the root ux.toml of a workspace.

    Args:
        workspace_root: Directory holding the root ux.toml

    Returns:
        Validated RootConfig

    Raises:
        ConfigError: If the file is missing, malformed, or invalid
    """
    path = workspace_root / CONFIG_FILENAME
    return RootConfig.from_dict(read_toml(path), path=path)


def load_package_config(directory: Path) -> PackageConfig | None:
    """Load a per-package ux.toml, or None when the directory has none."""
    path = directory / CONFIG_FILENAME
    if not path.is_file():
        return None
    return PackageConfig.from_dict(read_toml(path), path=path)


def _table(
    data: dict[str, Any],
    key: str,
    path: Path | None,
    *,
    prefix: str = "",
) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"{prefix}{key} must be a table", path)
    return value
