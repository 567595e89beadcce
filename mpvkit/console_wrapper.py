"""Launcher that runs the sibling .exe program with console I/O attached."""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import MutableMapping
from typing import Optional, Sequence

ENV_MARKER = "_started_from_console"
ENV_VALUE = "yes"


def started_from_console(environ: MutableMapping[str, str]) -> bool:
    """Return whether the launcher marked this process; the marker is consumed."""
    if environ.get(ENV_MARKER) != ENV_VALUE:
        return False
    del environ[ENV_MARKER]
    return True


def child_executable(path: str) -> str:
    """Return path with the text after its last dot replaced by "exe"."""
    dot = path.rfind(".")
    if dot < 0:
        raise ValueError(f"program path has no extension: {path!r}")
    return path[: dot + 1] + "exe"


def run(executable: str, args: Sequence[str]) -> int:
    """Run executable with args and inherited standard streams.

    The child sees the console marker in its environment. Returns its exit
    code, or 1 when it could not be started.
    """
    env = dict(os.environ)
    env[ENV_MARKER] = ENV_VALUE
    try:
        completed = subprocess.run([executable, *args], env=env, check=False)
    except OSError as exc:
        sys.stderr.write(f"CreateProcess: {exc.strerror or exc}\n")
        return 1
    return completed.returncode


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the program next to argv[0] with the remaining arguments."""
    if argv is None:
        argv = sys.argv
    if not argv:
        raise ValueError("argv must hold the program path")
    return run(child_executable(argv[0]), list(argv[1:]))


if __name__ == "__main__":
    sys.exit(main())