# src/assetpipe/watch/bindings.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..core.globs import glob_match


class BindingState(StrEnum):
    IDLE = "idle"
    TRIGGERED = "triggered"
    RUNNING = "running"


@dataclass(slots=True, frozen=True)
class WatchBinding:
    """A root-relative glob and the task to re-run when a matching file changes."""

    pattern: str
    task: str

    def matches(self, rel_path: str) -> bool:
        return glob_match(self.pattern, rel_path)
