# src/assetpipe/tasks/task_models.py

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

TaskBody = Callable[[], Any]


class TaskKind(StrEnum):
    """
    How a task executes.

    - leaf:     invokes exactly one body (usually a transform)
    - series:   runs child tasks strictly in order, stops at the first failure
    - parallel: runs child tasks concurrently, collects every failure
    """

    LEAF = "leaf"
    SERIES = "series"
    PARALLEL = "parallel"


@dataclass(slots=True, frozen=True)
class Task:
    name: str
    kind: TaskKind
    body: TaskBody | None = None
    children: tuple[str, ...] = ()
    help_text: str = ""
    aliases: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ResolvedTask:
    """Executable unit: a task with its children already looked up (acyclic by construction)."""

    task: Task
    children: tuple[ResolvedTask, ...] = ()

    @property
    def name(self) -> str:
        return self.task.name

    @property
    def kind(self) -> TaskKind:
        return self.task.kind

    def leaf_names(self) -> list[str]:
        if self.kind == TaskKind.LEAF:
            return [self.name]
        out: list[str] = []
        for child in self.children:
            out.extend(child.leaf_names())
        return out
