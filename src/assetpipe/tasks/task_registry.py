# src/assetpipe/tasks/task_registry.py

"""
Task registry.

Holds named tasks (leaf / series / parallel), resolves a name into an executable
unit and runs it:
- leaf failures are wrapped in TaskFailedError (task name + cause),
- series stops at the first failing child,
- parallel waits for every child and raises one ParallelTaskError with all failures.

Tasks are defined once at start-up and never change afterwards, so run() may be
called from several threads (watch coordinator, CLI) without locking.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from ..core.errors import (
    DuplicateTaskError,
    ParallelTaskError,
    PipelineError,
    TaskCycleError,
    TaskFailedError,
    UnknownTaskError,
)
from .task_models import ResolvedTask, Task, TaskBody, TaskKind

logger = logging.getLogger(__name__)


class TaskRegistry:
    def __init__(self, *, max_workers: int = 4) -> None:
        self._tasks: dict[str, Task] = {}
        self._aliases: dict[str, str] = {}
        self._max_workers = max(1, int(max_workers))

    # ---- definition ----

    def define(
        self,
        name: str,
        kind: TaskKind | str,
        body: TaskBody | Iterable[str],
        help_text: str = "",
        aliases: list[str] | None = None,
    ) -> Task:
        """
        Register a task.

        For a leaf, body is a zero-argument callable. For series/parallel, body is
        the ordered list of child task names (children may be defined later).
        """
        key = name.strip().lower()
        alias_keys = tuple(a.strip().lower() for a in (aliases or []))
        kind = TaskKind(kind)

        for k in (key, *alias_keys):
            if not k:
                raise ValueError("Task names must be non-empty")
            if self.has(k):
                raise DuplicateTaskError(k)
        if len(set((key, *alias_keys))) != 1 + len(alias_keys):
            raise DuplicateTaskError(key)

        if kind == TaskKind.LEAF:
            if not callable(body):
                raise TypeError(f"Leaf task {key!r} needs a callable body")
            task = Task(name=key, kind=kind, body=body, help_text=help_text, aliases=alias_keys)
        else:
            if isinstance(body, str) or callable(body):
                raise TypeError(f"Group task {key!r} needs a list of child task names")
            children = tuple(c.strip().lower() for c in body)
            for child in children:
                if child == key or child in alias_keys:
                    raise TaskCycleError([key, key])
            task = Task(
                name=key, kind=kind, children=children, help_text=help_text, aliases=alias_keys
            )

        self._tasks[key] = task
        for a in alias_keys:
            self._aliases[a] = key
        return task

    def has(self, name: str) -> bool:
        key = name.strip().lower()
        return key in self._tasks or key in self._aliases

    def get(self, name: str) -> Task:
        key = name.strip().lower()
        key = self._aliases.get(key, key)
        task = self._tasks.get(key)
        if task is None:
            raise UnknownTaskError(name)
        return task

    def names(self) -> list[str]:
        return list(self._tasks)

    def describe(self) -> str:
        lines = ["Available tasks:"]
        for task in self._tasks.values():
            alias = f" (aliases: {', '.join(task.aliases)})" if task.aliases else ""
            children = f" [{task.kind.value}: {', '.join(task.children)}]" if task.children else ""
            lines.append(f"  {task.name}{alias} - {task.help_text}{children}")
        return "\n".join(lines)

    # ---- resolution ----

    def resolve(self, name: str) -> ResolvedTask:
        """Resolve `name` into an executable unit; every reachable child must exist."""
        return self._resolve(self.get(name), stack=[])

    def _resolve(self, task: Task, *, stack: list[str]) -> ResolvedTask:
        if task.name in stack:
            cycle = stack[stack.index(task.name):] + [task.name]
            raise TaskCycleError(cycle)

        if task.kind == TaskKind.LEAF:
            return ResolvedTask(task=task)

        stack.append(task.name)
        try:
            children: list[ResolvedTask] = []
            for child_name in task.children:
                try:
                    child = self.get(child_name)
                except UnknownTaskError:
                    raise UnknownTaskError(child_name, referenced_by=task.name) from None
                children.append(self._resolve(child, stack=stack))
        finally:
            stack.pop()

        return ResolvedTask(task=task, children=tuple(children))

    # ---- execution ----

    def run(self, name: str) -> None:
        """Resolve and execute a task. Raises TaskFailedError / ParallelTaskError on failure."""
        self.execute(self.resolve(name))

    def execute(self, unit: ResolvedTask) -> None:
        if unit.kind == TaskKind.LEAF:
            self._run_leaf(unit.task)
        elif unit.kind == TaskKind.SERIES:
            self._run_series(unit)
        else:
            self._run_parallel(unit)

    def _run_leaf(self, task: Task) -> None:
        assert task.body is not None
        logger.info("Starting '%s'...", task.name)
        started = time.monotonic()
        try:
            task.body()
        except Exception as e:
            elapsed = time.monotonic() - started
            logger.error("'%s' errored after %.2fs: %s", task.name, elapsed, e)
            raise TaskFailedError(task.name, e) from e
        logger.info("Finished '%s' after %.2fs", task.name, time.monotonic() - started)

    def _run_series(self, unit: ResolvedTask) -> None:
        for i, child in enumerate(unit.children):
            try:
                self.execute(child)
            except PipelineError:
                skipped = [c.name for c in unit.children[i + 1:]]
                if skipped:
                    logger.warning(
                        "'%s' stopped at '%s'; not running: %s",
                        unit.name,
                        child.name,
                        ", ".join(skipped),
                    )
                raise

    def _run_parallel(self, unit: ResolvedTask) -> None:
        if not unit.children:
            return

        workers = min(self._max_workers, len(unit.children))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"task-{unit.name}") as pool:
            futures = [pool.submit(self.execute, child) for child in unit.children]

        failures: list[PipelineError] = []
        for future in futures:
            exc = future.exception()
            if exc is None:
                continue
            if isinstance(exc, PipelineError):
                failures.append(exc)
            else:
                # Interrupts (KeyboardInterrupt etc.) are not task failures.
                raise exc

        if failures:
            raise ParallelTaskError(unit.name, failures)
