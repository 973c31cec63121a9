"""Run a task's command list inside one package directory."""

from __future__ import annotations

import codecs
import io
import logging
import os
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import cast

from ux.errors import TaskArgumentsError
from ux.runner.types import ExecutionResult
from ux.workspace.types import Package

logger = logging.getLogger(__name__)

READ_CHUNK = 64 * 1024

OutputCallback = Callable[[str], None]


@dataclass(frozen=True)
class StepOutcome:
    """Result of a single shell command."""

    command: str
    returncode: int
    output: str
    timed_out: bool = False


def check_extra_args(packages: Iterable[Package], task: str, extra_args: Sequence[str]) -> None:
    """Refuse trailing arguments when any selected package runs task in several steps.

    Raises:
        TaskArgumentsError: Naming the first multi-step package
    """
    if not extra_args:
        return
    for pkg in packages:
        steps = pkg.commands(task)
        if len(steps) > 1:
            raise TaskArgumentsError(
                f"cannot pass extra arguments to {task!r}: "
                f"{pkg.label} defines it as {len(steps)} steps"
            )


def task_commands(package: Package, task: str, extra_args: Sequence[str] = ()) -> tuple[str, ...]:
    """Return the commands to run, with trailing arguments appended to a single step."""
    commands = package.commands(task)
    if not extra_args:
        return commands
    if len(commands) != 1:
        raise TaskArgumentsError(
            f"cannot pass extra arguments to {task!r}: "
            f"{package.label} defines it as {len(commands)} steps"
        )
    return (" ".join([commands[0], *extra_args]),)


def run_step(
    command: str,
    *,
    cwd: os.PathLike[str] | str,
    on_output: OutputCallback | None = None,
    timeout: float | None = None,
) -> StepOutcome:
    """Run one command through sh, merging stdout and stderr.

    Output is decoded incrementally so a multi-byte character split across
    reads is never broken; each decoded chunk is handed to on_output as soon
    as it arrives.
    """
    try:
        proc = subprocess.Popen(
            command,
            shell=True,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            start_new_session=timeout is not None,
        )
    except OSError as exc:
        message = f"ux: cannot start command in {cwd}: {exc}\n"
        if on_output is not None:
            on_output(message)
        return StepOutcome(command=command, returncode=127, output=message)

    timed_out = threading.Event()
    timer: threading.Timer | None = None
    if timeout is not None:
        timer = threading.Timer(timeout, _kill_group, args=(proc, timed_out))
        timer.daemon = True
        timer.start()

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    captured: list[str] = []

    def emit(text: str) -> None:
        if text:
            captured.append(text)
            if on_output is not None:
                on_output(text)

    stdout = cast(io.BufferedReader, proc.stdout)
    try:
        with stdout:
            while chunk := stdout.read1(READ_CHUNK):
                emit(decoder.decode(chunk))
        emit(decoder.decode(b"", final=True))
        returncode = proc.wait()
    finally:
        if timer is not None:
            timer.cancel()

    # A timer firing after a clean exit killed nothing.
    killed = timed_out.is_set() and returncode != 0
    if killed:
        emit(f"\n[timed out after {timeout:g}s]\n")
    return StepOutcome(
        command=command,
        returncode=returncode,
        output="".join(captured),
        timed_out=killed,
    )


def _kill_group(proc: subprocess.Popen[bytes], timed_out: threading.Event) -> None:
    timed_out.set()
    logger.warning("command exceeded its timeout, killing pid %s", proc.pid)
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


def run_package_task(
    package: Package,
    task: str,
    *,
    extra_args: Sequence[str] = (),
    timeout: float | None = None,
    on_step: Callable[[str], None] | None = None,
    on_output: OutputCallback | None = None,
) -> ExecutionResult:
    """Run every step of a task in the package directory, stopping at the first failure."""
    commands = task_commands(package, task, extra_args)
    start = time.monotonic()
    output: list[str] = []

    for command in commands:
        if on_step is not None:
            on_step(command)
        outcome = run_step(command, cwd=package.directory, on_output=on_output, timeout=timeout)
        output.append(outcome.output)
        if outcome.returncode != 0:
            logger.debug("%s: step %r exited %s", package.label, command, outcome.returncode)
            return ExecutionResult(
                package=package,
                succeeded=False,
                duration=time.monotonic() - start,
                failed_step=command,
                output="".join(output),
            )

    return ExecutionResult(
        package=package,
        succeeded=True,
        duration=time.monotonic() - start,
        output="".join(output),
    )
