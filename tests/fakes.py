# tests/fakes.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from assetpipe.core.errors import TransformFailure
from assetpipe.core.ports import PathCallback


@dataclass(slots=True)
class RecordingBroadcaster:
    """ReloadBroadcaster that only records calls."""

    calls: list[str | None] = field(default_factory=list)

    def reload(self, path: str | None = None) -> None:
        self.calls.append(path)


class GatedRunner:
    """
    TaskRunner for coordinator tests.

    - records every run (task name)
    - the first run blocks until `release()` when gated, so tests can pile up
      notifications while a run is in progress
    - tasks listed in `failing` raise TransformFailure
    - tracks the maximum number of concurrent runs per task
    """

    def __init__(self, *, gated: bool = False, failing: set[str] | None = None) -> None:
        self.calls: list[str] = []
        self.failing = set(failing or ())
        self.started = threading.Event()
        self._gate = threading.Event()
        if not gated:
            self._gate.set()
        self._lock = threading.Lock()
        self._active: dict[str, int] = {}
        self.max_active: dict[str, int] = {}

    def release(self) -> None:
        self._gate.set()

    def run(self, name: str) -> None:
        with self._lock:
            self.calls.append(name)
            self._active[name] = self._active.get(name, 0) + 1
            self.max_active[name] = max(self.max_active.get(name, 0), self._active[name])
        self.started.set()
        try:
            if not self._gate.wait(timeout=10):
                raise TimeoutError("gate never released")
            if name in self.failing:
                raise TransformFailure(name, "boom")
        finally:
            with self._lock:
                self._active[name] -= 1


class FakeChangeSource:
    """ChangeSource that lets tests push paths by hand."""

    def __init__(self) -> None:
        self.callback: PathCallback | None = None
        self.started = 0
        self.stopped = 0

    def start(self, callback: PathCallback) -> None:
        self.callback = callback
        self.started += 1

    def stop(self) -> None:
        self.stopped += 1

    def emit(self, rel_path: str) -> None:
        assert self.callback is not None, "source not started"
        self.callback(rel_path)
