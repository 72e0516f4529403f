"""
Blocking invocation of the external SDK tools.
"""

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path

from qnnconv.errors import ToolInvocationError


def render_argv(argv: list[str]) -> str:
    return shlex.join([str(a) for a in argv])


def resolve_tool(tool: str | Path) -> Path | None:
    """
    Return the path of `tool` when it is a regular file, or the `PATH` match for a
    bare command name. None when neither applies.
    """
    p = Path(tool)
    if p.is_file():
        return p
    found = shutil.which(str(tool))
    return Path(found) if found else None


def tool_argv(tool: Path) -> list[str]:
    """
    argv prefix that executes `tool`.

    SDK tools that lost their executable bit (e.g. after an unzip) are still
    runnable through their shebang line.
    """
    if os.access(tool, os.X_OK):
        return [str(tool)]
    try:
        with tool.open("r", encoding="utf-8", errors="replace") as f:
            first = f.readline()
    except OSError:
        first = ""
    shebang = first[2:].strip() if first.startswith("#!") else ""
    if shebang:
        return shlex.split(shebang) + [str(tool)]
    return [str(tool)]


def run_tool(name: str, argv: list[str], *, log: logging.Logger | None = None, failure: str | None = None) -> int:
    """
    Run `argv` to completion with inherited stdout/stderr.
    Raises ToolInvocationError when the process cannot start or exits nonzero.
    """
    argv = [str(a) for a in argv]
    if log is not None:
        log.debug("[%s] exec: %s", name, render_argv(argv))
    try:
        rc = subprocess.call(argv)
    except OSError as e:
        raise ToolInvocationError(name, None, f"{name} could not be started: {e}") from e
    if log is not None:
        log.debug("[%s] exited rc=%s", name, rc)
    if rc != 0:
        raise ToolInvocationError(name, rc, f"{failure} (rc={rc})" if failure else None)
    return rc
