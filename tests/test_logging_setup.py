# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from assetpipe.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("assetpipe.watch.coordinator", logging.DEBUG, True),
        ("tornado.access", logging.INFO, False),
        ("tornado.access", logging.WARNING, True),
        ("watchdog.observers.inotify_buffer", logging.DEBUG, False),
        ("PIL.PngImagePlugin", logging.WARNING, True),
        ("py.warnings", logging.WARNING, False),
        ("urllib3", logging.WARNING, False),
        ("urllib3", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = list(root.handlers), root.level
    try:
        log_file = setup_logging(log_dir=tmp_path / "logs")
        logging.getLogger("assetpipe.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert log_file == tmp_path / "logs" / "assetpipe.log"
        assert "hello file" in log_file.read_text(encoding="utf-8")
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])
        logging.captureWarnings(False)
