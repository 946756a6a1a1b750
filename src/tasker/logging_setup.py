# src/tasker/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Third-party loggers and the lowest level each may print on the console.
_CONSOLE_FLOORS: dict[str, int] = {
    "aiosmtplib": logging.WARNING,
    "asyncio": logging.WARNING,
    "py.warnings": logging.ERROR,
}

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console filter for the reminder worker.

    Records from the worker's own package always pass (the handler level
    still applies). Known libraries pass from their floor in
    _CONSOLE_FLOORS; anything else only at ERROR and above.
    """

    def __init__(self, package: str = "tasker") -> None:
        super().__init__()
        self._prefix = package + "."

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(self._prefix) or name == self._prefix[:-1]:
            return True
        for logger_name, floor in _CONSOLE_FLOORS.items():
            if name == logger_name or name.startswith(logger_name + "."):
                return record.levelno >= floor
        return record.levelno >= logging.ERROR


def log_file_name(app_name: str) -> str:
    """'Task Reminders' -> 'task-reminders.log'; blank names fall back to 'tasker.log'."""
    slug = "-".join((app_name or "").lower().split())
    slug = "".join(ch for ch in slug if ch.isalnum() or ch in "-_.")
    return f"{slug or 'tasker'}.log"


def setup_logging(
    *,
    log_dir: str | Path = ".local/tasker",
    app_name: str = "tasker",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console (filtered) plus a full file log at <log_dir>/<app_name>.log.

    Replaces any handlers already on the root logger, so calling it twice
    does not duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_file_name(app_name)

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for h in list(root.handlers):
        root.removeHandler(h)
        # Close only the log file this function opened earlier.
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename) == log_file.absolute():
            h.close()

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter(__name__.split(".")[0]))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    # SMTP protocol traces are only useful when chasing a delivery problem.
    if file_level > logging.DEBUG:
        logging.getLogger("aiosmtplib").setLevel(logging.INFO)

    logging.captureWarnings(True)
    return log_file
