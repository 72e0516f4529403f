import logging
import os
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TextIO


_FILE_FMT = logging.Formatter("[%(asctime)s] %(levelname)s %(message)s", datefmt="%Y-%m-%d %H:%M:%S")

_COLORS = {
    "error": "\033[0;31m",
    "success": "\033[0;32m",
    "note": "\033[1;33m",
    "step": "\033[0;34m",
}
_RESET = "\033[0m"

# Pass as `extra=` to pick the console colour of an INFO record.
NOTE = {"style": "note"}
STEP = {"style": "step"}
SUCCESS = {"style": "success"}


class ConsoleFormatter(logging.Formatter):
    """Bare messages, with an `ERROR: ` / `WARNING: ` prefix and optional ANSI colour."""

    def __init__(self, *, use_colors: bool = False):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        msg = record.getMessage()
        if record.levelno >= logging.ERROR:
            msg = f"ERROR: {msg}"
            style = "error"
        elif record.levelno >= logging.WARNING:
            msg = f"WARNING: {msg}"
            style = "note"
        else:
            style = getattr(record, "style", None)
        if self.use_colors and style in _COLORS:
            return f"{_COLORS[style]}{msg}{_RESET}"
        return msg


class _BelowError(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def _wants_color(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    try:
        return stream.isatty()
    except Exception:
        return False


@dataclass(frozen=True)
class ConsoleLog:
    logger: logging.Logger
    _handlers: list[logging.Handler] = field(default_factory=list)

    def close(self) -> None:
        for handler in self._handlers:
            try:
                self.logger.removeHandler(handler)
            except Exception:
                pass
            try:
                handler.flush()
                handler.close()
            except Exception:
                pass


def open_console_log(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    logger_name: str = "qnnconv",
) -> ConsoleLog:
    """
    Build the orchestrator logger: progress on stdout, errors on stderr and,
    optionally, a timestamped copy of every record appended to `log_file`.
    """
    stdout = stdout if stdout is not None else sys.stdout
    stderr = stderr if stderr is not None else sys.stderr

    unique = f"{logger_name}.{os.getpid()}.{int(time.time() * 1000)}"
    logger = logging.getLogger(unique)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    out = logging.StreamHandler(stdout)
    out.addFilter(_BelowError())
    out.setFormatter(ConsoleFormatter(use_colors=_wants_color(stdout)))

    err = logging.StreamHandler(stderr)
    err.setLevel(logging.ERROR)
    err.setFormatter(ConsoleFormatter(use_colors=_wants_color(stderr)))

    handlers: list[logging.Handler] = [out, err]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        fh.setFormatter(_FILE_FMT)
        handlers.append(fh)

    for handler in handlers:
        logger.addHandler(handler)
    return ConsoleLog(logger=logger, _handlers=handlers)
