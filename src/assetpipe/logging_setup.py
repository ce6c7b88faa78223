# src/assetpipe/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "assetpipe.log"

# Console thresholds for third-party loggers; the longest matching prefix wins.
# tornado.access logs one line per request and watchdog one per inotify event.
_CONSOLE_THRESHOLDS: dict[str, int] = {
    "tornado.access": logging.WARNING,
    "tornado": logging.WARNING,
    "watchdog": logging.WARNING,
    "PIL": logging.WARNING,
    "py.warnings": logging.ERROR,
}


class _ConsoleNoiseFilter(logging.Filter):
    """Pass every assetpipe record; third parties only at their threshold (ERROR by default)."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name == "assetpipe" or name.startswith("assetpipe."):
            return True

        best = ""
        for prefix in _CONSOLE_THRESHOLDS:
            if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > len(best):
                best = prefix
        threshold = _CONSOLE_THRESHOLDS[best] if best else logging.ERROR
        return record.levelno >= threshold


def _console_formatter(console_level: int) -> logging.Formatter:
    # A watch session prints a line per rebuild: time and message are enough
    # unless the user asked for debug output.
    if console_level <= logging.DEBUG:
        return logging.Formatter(
            fmt="[%(asctime)s] %(levelname)s %(name)s: %(message)s", datefmt="%H:%M:%S"
        )
    return logging.Formatter(fmt="[%(asctime)s] %(message)s", datefmt="%H:%M:%S")


def setup_logging(
    *,
    log_dir: str | Path = ".local/assetpipe",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send logs to stderr (filtered, short) and to <log_dir>/assetpipe.log (everything).

    Call once from the CLI before the first task runs. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(_console_formatter(console_level))
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    # PIL logs every plugin import at DEBUG.
    logging.getLogger("PIL").setLevel(logging.INFO)

    return log_file
