"""Logging for tgterm.

Two destinations hang off the "tgterm" logger:

    session file  everything at $TGTERM_LOG_LEVEL, one rotating file per
                  session name, so reruns of a session append to it.
    stderr        warnings and errors only, and only while the terminal is
                  ours. tui_owns_terminal() mutes it for the app's lifetime.

// [LAW:single-enforcer] Handlers are attached in this module only.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOGGER_NAME = "tgterm"
DEFAULT_LOG_DIR = "~/.local/share/tgterm/logs"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"
CONSOLE_FORMAT = "tgterm: %(message)s"


@dataclass(frozen=True)
class LoggingRuntime:
    level_name: str
    file_path: Path


_runtime: LoggingRuntime | None = None
_console: logging.Handler | None = None


def resolve_level(raw: str | None) -> int:
    """Map a level name to its number. Unknown names mean INFO."""
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def session_log_path(session_name: str) -> Path:
    """$TGTERM_LOG_FILE, else <$TGTERM_LOG_DIR>/<session>.log."""
    explicit = os.environ.get("TGTERM_LOG_FILE")
    if explicit:
        return Path(explicit).expanduser()
    log_dir = Path(os.environ.get("TGTERM_LOG_DIR") or DEFAULT_LOG_DIR).expanduser()
    stem = re.sub(r"[^A-Za-z0-9_-]+", "-", session_name).strip("-") or "session"
    return log_dir / f"{stem}.log"


def configure(session_name: str = "unnamed-session") -> LoggingRuntime:
    """Attach the session file and stderr handlers. Later calls are no-ops."""
    global _runtime, _console
    if _runtime is not None:
        return _runtime

    level = resolve_level(os.environ.get("TGTERM_LOG_LEVEL"))
    path = session_log_path(session_name)
    path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8"
    )
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    console = logging.StreamHandler()
    console.setLevel(logging.WARNING)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers[:] = [file_handler, console]

    _console = console
    _runtime = LoggingRuntime(level_name=logging.getLevelName(level), file_path=path)
    return _runtime


@contextmanager
def tui_owns_terminal() -> Iterator[None]:
    """Keep log records off stderr while a full-screen app is drawing."""
    logger = logging.getLogger(LOGGER_NAME)
    console = _console
    if console is not None:
        logger.removeHandler(console)
    try:
        yield
    finally:
        if console is not None:
            logger.addHandler(console)


def reset() -> None:
    """Detach and close everything configure() attached."""
    global _runtime, _console
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    _runtime = None
    _console = None
