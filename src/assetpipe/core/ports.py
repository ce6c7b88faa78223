# src/assetpipe/core/ports.py

"""
Ports (interfaces) used between components.

The watch coordinator and the reload bridge depend on Protocols instead of the
concrete registry / watchdog observer / tornado server. This keeps the sequencing
logic testable with in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

PathCallback = Callable[[str], None]
# Receives a project-root-relative posix path, e.g. "css/site.css".


class TaskRunner(Protocol):
    """Runs a task by name; raises on failure (see TaskRegistry.run)."""
    def run(self, name: str) -> None: ...


class ChangeSource(Protocol):
    """
    Filesystem notification stream.

    start() begins delivering changed paths to `callback` (from a background
    thread); stop() ends delivery and releases OS watch handles.
    """

    def start(self, callback: PathCallback) -> None: ...
    def stop(self) -> None: ...


class ReloadBroadcaster(Protocol):
    """Pushes a reload instruction to every connected dev-server client."""
    def reload(self, path: str | None = None) -> None: ...
