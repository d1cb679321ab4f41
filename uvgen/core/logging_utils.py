"""
Logging helpers.

uvgen runs from the CLI and from batch scripts. Library modules only create
module loggers; the entry point calls setup_logging() once, which sends the
full record stream to a log file and warnings to stderr.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional

ENV_LOG_LEVEL = "UVGEN_LOG_LEVEL"

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
CONSOLE_FORMAT = "uvgen: %(levelname)s: %(message)s"

_once_seen: set[str] = set()
_once_lock = threading.Lock()


def _state_home() -> Path:
    if os.name == "nt":
        return Path(os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or str(Path.home()))
    xdg = os.environ.get("XDG_STATE_HOME")
    return Path(xdg) if xdg else Path.home() / ".local" / "state"


def default_log_dir() -> Path:
    """Per-user log directory (``<state home>/uvgen/logs``)."""
    return _state_home() / "uvgen" / "logs"


def _parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    resolved = logging.getLevelName(name) if name else logging.INFO
    # getLevelName returns "Level X" for unknown names
    return resolved if isinstance(resolved, int) else logging.INFO


def _attached_log_file(root: logging.Logger) -> Optional[Path]:
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(
    *,
    log_level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    filename: str = "uvgen.log",
    console_level: Optional[int] = logging.WARNING,
) -> Optional[Path]:
    """
    Attach a UTF-8 file handler (and a stderr handler) to the root logger.

    Calling it again is a no-op that returns the file already in use.
    ``UVGEN_LOG_LEVEL`` overrides ``log_level``. Returns None when the log
    directory cannot be created; console logging still works then.
    """
    root = logging.getLogger()
    existing = _attached_log_file(root)
    if existing is not None:
        return existing

    level = _parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    root.setLevel(level)
    logging.captureWarnings(True)

    if console_level is not None and not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console)

    log_path = Path(log_dir) if log_dir is not None else default_log_dir()
    log_path = log_path / filename
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
    except OSError:
        root.warning("Log file unavailable: %s", log_path)
        return None

    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(file_handler)
    root.info("Logging to %s (level=%s)", log_path, logging.getLevelName(level))
    return log_path


def format_exception_message(prefix: str, message: str, *, log_path: Optional[Path]) -> str:
    """User-facing error text; points at the log file when there is one."""
    lines = [prefix, "", message]
    if log_path is not None:
        lines += ["", f"(log file: {log_path})"]
    return "\n".join(lines)


def log_once(
    logger: logging.Logger,
    key: str,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    Log ``msg`` only the first time ``key`` is seen in this process.

    Returns True when the record was emitted.
    """
    with _once_lock:
        if key in _once_seen:
            return False
        _once_seen.add(key)
    logger.log(level, msg, *args, exc_info=exc_info)
    return True
