# src/assetpipe/watch/fs_source.py

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..core.globs import glob_base
from ..core.ports import PathCallback

logger = logging.getLogger(__name__)

_RELEVANT_EVENTS = {"created", "modified", "deleted", "moved"}


def plan_watches(root: Path, patterns: Iterable[str]) -> dict[Path, bool]:
    """
    Directories to hand to the observer -> recursive flag.

    Each pattern is watched at its wildcard-free base directory. A base that does
    not exist yet (e.g. assets/images before the first image is added) is watched
    recursively from its nearest existing ancestor, so creating it is noticed.
    """
    plan: dict[Path, bool] = {}
    for pattern in patterns:
        base = root / glob_base(pattern)
        recursive = "**" in pattern
        while not base.is_dir() and base != root:
            base = base.parent
            recursive = True
        plan[base] = plan.get(base, False) or recursive
    return plan


class _Handler(FileSystemEventHandler):
    def __init__(self, source: WatchdogChangeSource) -> None:
        super().__init__()
        self._source = source

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _RELEVANT_EVENTS:
            return
        paths = [event.src_path]
        dest = getattr(event, "dest_path", "")
        if dest:
            paths.append(dest)
        for raw in paths:
            self._source.deliver(os.fsdecode(raw))


class WatchdogChangeSource:
    """
    One shared watchdog observer for all watch bindings.

    Both `watch` and `serve` subscribe through the same coordinator, so each
    directory holds one OS watch handle no matter how many bindings use it.
    """

    def __init__(self, root: Path, patterns: Iterable[str]) -> None:
        self._root = root.resolve()
        self._patterns = list(patterns)
        self._observer: Observer | None = None
        self._callback: PathCallback | None = None

    def deliver(self, abs_path: str) -> None:
        if self._callback is None:
            return
        try:
            rel = Path(abs_path).resolve().relative_to(self._root).as_posix()
        except ValueError:
            return
        self._callback(rel)

    def start(self, callback: PathCallback) -> None:
        if self._observer is not None:
            return
        self._callback = callback
        observer = Observer()
        handler = _Handler(self)
        for directory, recursive in plan_watches(self._root, self._patterns).items():
            observer.schedule(handler, str(directory), recursive=recursive)
            logger.debug("Observing %s (recursive=%s)", directory, recursive)
        observer.daemon = True
        observer.start()
        self._observer = observer

    def stop(self) -> None:
        observer = self._observer
        if observer is None:
            return
        self._observer = None
        observer.stop()
        observer.join(timeout=5.0)
        self._callback = None
