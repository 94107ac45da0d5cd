"""Shell helpers shared by the configuration API and script helpers.

Commands run through ``sh -lc`` in a given working directory. Interactive
runs leave TUI mode around the child and always re-enter it afterwards.
"""

from __future__ import annotations

import os
import platform
import shlex
import subprocess
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class CommandOutput:
    returncode: int
    text: str


def quote(value: str) -> str:
    return shlex.quote(str(value))


def os_name() -> str:
    """Return the lower-case platform name, e.g. ``linux`` or ``darwin``."""
    return platform.system().lower()


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def shell_argv(cmd: str) -> list[str]:
    return ["sh", "-lc", cmd]


def child_env(extra: Mapping[str, str] | None) -> dict[str, str] | None:
    if not extra:
        return None
    env = dict(os.environ)
    env.update(extra)
    return env


def run_captured(cmd: str, cwd: Path, env: Mapping[str, str] | None = None) -> CommandOutput:
    """Run ``cmd`` to completion and return stdout followed by any stderr.

    ``OSError`` from spawning propagates to the caller.
    """
    completed = subprocess.run(
        shell_argv(cmd),
        cwd=str(cwd),
        env=child_env(env),
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        errors="replace",
        check=False,
    )
    text = completed.stdout
    if completed.stderr:
        text = f"{text}\n{completed.stderr}" if text else completed.stderr
    return CommandOutput(returncode=completed.returncode, text=text)


def run_interactive(
    cmd: str,
    cwd: Path,
    suspend: Callable[[], None],
    restore: Callable[[], None],
    env: Mapping[str, str] | None = None,
) -> int:
    """Run ``cmd`` attached to the terminal, suspending TUI mode meanwhile."""
    suspend()
    try:
        return subprocess.run(shell_argv(cmd), cwd=str(cwd), env=child_env(env), check=False).returncode
    finally:
        restore()
