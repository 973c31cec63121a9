"""Tests for ux.toml loading and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ux.errors import ConfigError
from ux.utils.repo_config import (
    DEFAULT_BASE_REF,
    PackageConfig,
    RootConfig,
    TaskConfig,
    load_package_config,
    load_root_config,
    parse_tasks,
)

if TYPE_CHECKING:
    from pathlib import Path


ROOT_TOML = """
[workspace]
members = ["//packages/...", "//tools/cli"]

[tasks.lint]
parallel = true

[tasks.test]
parallel = false
timeout = 30

[defaults.python.tasks]
lint = "ruff check ."
test = ["pytest -q", "mypy ."]
"""


def test_load_root_config_parses_all_sections(write_tree) -> None:
    root = write_tree({"ux.toml": ROOT_TOML})

    config = load_root_config(root)

    assert config.workspace.members == ("//packages/...", "//tools/cli")
    assert config.workspace.base == DEFAULT_BASE_REF
    assert config.tasks["lint"] == TaskConfig(parallel=True)
    assert config.tasks["test"] == TaskConfig(parallel=False, timeout=30.0)
    assert config.defaults["python"] == {
        "lint": ("ruff check .",),
        "test": ("pytest -q", "mypy ."),
    }


def test_unconfigured_task_defaults_to_serial() -> None:
    config = RootConfig.from_dict({"workspace": {"members": []}})
    assert config.task_config("build") == TaskConfig(parallel=False, timeout=None)


def test_custom_base_ref() -> None:
    config = RootConfig.from_dict({"workspace": {"members": [], "base": "upstream/trunk"}})
    assert config.workspace.base == "upstream/trunk"


def test_malformed_toml_names_the_file(write_tree) -> None:
    root = write_tree({"ux.toml": "[workspace\nmembers = ["})

    with pytest.raises(ConfigError) as excinfo:
        load_root_config(root)

    assert excinfo.value.path == root / "ux.toml"
    assert str(root / "ux.toml") in str(excinfo.value)


def test_missing_root_config_is_config_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="cannot read config"):
        load_root_config(tmp_path)


@pytest.mark.parametrize(
    ("data", "message"),
    [
        ({"workspace": {"members": "//packages/..."}}, "workspace.members"),
        ({"workspace": {}, "tasks": {"lint": {"parallel": "yes"}}}, "tasks.lint.parallel"),
        ({"workspace": {}, "tasks": {"lint": {"timeout": 0}}}, "tasks.lint.timeout"),
        ({"workspace": {}, "tasks": {"lint": True}}, "tasks.lint must be a table"),
        ({"workspace": {}, "defaults": {"go": {"tasks": {"test": 3}}}}, "defaults.go.tasks.test"),
    ],
)
def test_invalid_root_structure_is_rejected(data: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        RootConfig.from_dict(data)


def test_parse_tasks_string_and_list() -> None:
    assert parse_tasks({"a": "one", "b": ["x", "y"]}) == {"a": ("one",), "b": ("x", "y")}


def test_parse_tasks_rejects_empty_list() -> None:
    with pytest.raises(ConfigError, match="non-empty list"):
        parse_tasks({"a": []})


def test_load_package_config_absent_returns_none(tmp_path: Path) -> None:
    assert load_package_config(tmp_path) is None


def test_load_package_config(write_tree) -> None:
    root = write_tree(
        {
            "svc/ux.toml": '[package]\nname = "api"\ntype = "go"\n\n[tasks]\ntest = "go test ./..."\n',
        }
    )

    config = load_package_config(root / "svc")

    assert config == PackageConfig(name="api", type="go", tasks={"test": ("go test ./...",)})


def test_package_config_rejects_non_string_type() -> None:
    with pytest.raises(ConfigError, match="package.type"):
        PackageConfig.from_dict({"package": {"type": 1}})
