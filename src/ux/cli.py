"""ux command line interface."""

import typer
from rich.text import Text
from typer.core import TyperCommand

from ux import __version__
from ux.errors import UxError
from ux.reporting import print_package_list, print_summary
from ux.runner import run_task
from ux.ui import ConsoleSink, configure_logging, console, err_console
from ux.utils.repo import find_workspace_root
from ux.utils.repo_config import load_root_config
from ux.workspace import (
    discover_packages,
    filter_affected,
    filter_by_label,
    packages_with_task,
    resolve_filter,
)

cli = typer.Typer(
    name="ux",
    help="ux - simple monorepo task runner",
    no_args_is_help=True,
    epilog=(
        "Root ux.toml defines workspace members, task settings and per-type "
        "default tasks. A package may add its own ux.toml to override them."
    ),
)


TASK_ARGS_SEPARATOR = "--"
TASK_ARGS_KEY = "ux.task_args"


class RunCommand(TyperCommand):
    """Takes everything after the first -- as arguments for the task itself.

    The split happens before click parses the rest, so "ux run test -- -k x"
    never mistakes -k for the package filter.
    """

    def parse_args(self, ctx: typer.Context, args: list[str]) -> list[str]:
        if TASK_ARGS_SEPARATOR in args:
            idx = args.index(TASK_ARGS_SEPARATOR)
            ctx.meta[TASK_ARGS_KEY] = tuple(args[idx + 1 :])
            args = args[:idx]
        return super().parse_args(ctx, args)


def _fail(exc: Exception) -> typer.Exit:
    err_console.print(Text(f"error: {exc}", style="red"), soft_wrap=True)
    return typer.Exit(code=1)


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@cli.callback()
def _cli_callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show ux version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log diagnostics to stderr.",
    ),
) -> None:
    """Run named tasks across the packages of a workspace."""
    configure_logging(debug=debug)


@cli.command()
def version() -> None:
    """Show ux version."""
    typer.echo(__version__)


@cli.command(name="run", cls=RunCommand)
def run_cmd(
    ctx: typer.Context,
    task: str = typer.Argument(..., help="Task name, e.g. test or lint."),
    target: str | None = typer.Argument(
        None,
        help=(
            "Packages to run on: //label, //dir/..., //... for everything, or a path "
            "relative to the current directory (., ..., lib, lib/...)."
        ),
    ),
    affected: bool = typer.Option(
        False,
        "--affected",
        help="Only packages with files changed against the workspace base ref.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print the output of failed packages inline.",
    ),
    jobs: int | None = typer.Option(
        None,
        "--jobs",
        "-j",
        min=1,
        help="Worker threads for parallel tasks (default: UX_JOBS or 2x CPUs).",
    ),
) -> None:
    """Run TASK on every package that defines it.

    Arguments after -- are appended to the task command; they are only
    accepted when every selected package runs the task as a single step.

    Examples:
      ux run lint
      ux run test //services/api
      ux run lint //packages/... --affected
      ux run test -- -k smoke
      ux run test //tools/cli -- -k smoke

    Exit codes:
      0 - All packages passed, or no package defines the task
      1 - One or more packages failed, or a configuration error
    """
    try:
        root = find_workspace_root()
        config = load_root_config(root)
        packages = discover_packages(root, config)

        if target:
            packages = filter_by_label(packages, resolve_filter(target, root))
        if affected:
            packages = filter_affected(root, packages, config.workspace.base)

        relevant = packages_with_task(packages, task)
        if not relevant:
            console.print(f'no packages define task "{task}"')
            raise typer.Exit(code=0)

        results = run_task(
            task,
            relevant,
            config.task_config(task),
            sink=ConsoleSink(),
            extra_args=ctx.meta.get(TASK_ARGS_KEY, ()),
            jobs=jobs,
        )
    except UxError as e:
        raise _fail(e) from e

    summary = print_summary(task, results, verbose=verbose)
    raise typer.Exit(code=summary.exit_code)


@cli.command(name="list")
def list_cmd(
    target: str | None = typer.Argument(
        None,
        help="Only list packages matching this label or relative path.",
    ),
) -> None:
    """List discovered packages and their resolved tasks."""
    try:
        root = find_workspace_root()
        config = load_root_config(root)
        packages = discover_packages(root, config)
        if target:
            packages = filter_by_label(packages, resolve_filter(target, root))
    except UxError as e:
        raise _fail(e) from e

    print_package_list(packages)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
