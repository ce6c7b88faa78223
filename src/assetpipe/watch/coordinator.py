# src/assetpipe/watch/coordinator.py

"""
Watch coordinator.

Maps change notifications to bound tasks and re-runs them:
- per binding: idle -> triggered -> running -> idle,
- a trigger from idle waits `debounce` seconds so a burst of saves becomes one run,
- notifications while running set a single pending flag (never a queue),
- on completion a pending re-run starts immediately,
- bindings that share a task never run it concurrently (per-task lock).

Task failures are logged and handed to completion listeners; they never end the
watch session.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..core.ports import ChangeSource, TaskRunner
from .bindings import BindingState, WatchBinding

logger = logging.getLogger(__name__)

CompletionListener = Callable[[WatchBinding, BaseException | None], None]


@dataclass(slots=True)
class _Slot:
    binding: WatchBinding
    state: BindingState = BindingState.IDLE
    pending: bool = False
    runs: int = 0


class WatchCoordinator:
    def __init__(
        self,
        runner: TaskRunner,
        bindings: Iterable[WatchBinding],
        *,
        debounce: float = 0.1,
        source: ChangeSource | None = None,
    ) -> None:
        self._runner = runner
        self._slots = [_Slot(binding=b) for b in bindings]
        self._debounce = max(0.0, float(debounce))
        self._source = source
        self._cond = threading.Condition()
        self._task_locks: dict[str, threading.Lock] = {
            s.binding.task: threading.Lock() for s in self._slots
        }
        self._listeners: list[CompletionListener] = []
        self._started = False

    @property
    def bindings(self) -> list[WatchBinding]:
        return [s.binding for s in self._slots]

    def add_listener(self, listener: CompletionListener) -> None:
        self._listeners.append(listener)

    # ---- lifecycle ----

    def start(self) -> None:
        """Start receiving notifications from the change source (idempotent)."""
        if self._started:
            return
        if self._source is not None:
            self._source.start(self.notify_path)
        self._started = True
        for s in self._slots:
            logger.info("Watching %s -> '%s'", s.binding.pattern, s.binding.task)

    def stop(self, *, timeout: float = 10.0) -> None:
        if not self._started:
            return
        if self._source is not None:
            self._source.stop()
        self._started = False
        if not self.wait_idle(timeout):
            logger.warning("Watch stopped while tasks were still running")

    # ---- notifications ----

    def notify_path(self, rel_path: str) -> int:
        """Handle one changed path; returns how many bindings it triggered."""
        hits = 0
        for slot in self._slots:
            if slot.binding.matches(rel_path):
                logger.debug("Change %s matches %s", rel_path, slot.binding.pattern)
                self._trigger(slot)
                hits += 1
        return hits

    def trigger(self, binding: WatchBinding) -> None:
        for slot in self._slots:
            if slot.binding == binding:
                self._trigger(slot)
                return
        raise KeyError(f"Unknown binding: {binding}")

    def _trigger(self, slot: _Slot) -> None:
        with self._cond:
            if slot.state == BindingState.IDLE:
                slot.state = BindingState.TRIGGERED
                t = threading.Thread(
                    target=self._worker,
                    args=(slot,),
                    name=f"watch-{slot.binding.task}",
                    daemon=True,
                )
                t.start()
            elif slot.state == BindingState.RUNNING:
                slot.pending = True
            # TRIGGERED: the upcoming run already covers this event.

    # ---- execution ----

    def _worker(self, slot: _Slot) -> None:
        if self._debounce:
            time.sleep(self._debounce)

        while True:
            with self._cond:
                slot.state = BindingState.RUNNING

            error = self._run_once(slot.binding)

            with self._cond:
                slot.runs += 1

            self._emit(slot.binding, error)

            with self._cond:
                if slot.pending:
                    slot.pending = False
                    continue
                slot.state = BindingState.IDLE
                self._cond.notify_all()
                return

    def _run_once(self, binding: WatchBinding) -> BaseException | None:
        with self._task_locks[binding.task]:
            try:
                self._runner.run(binding.task)
            except Exception as e:
                logger.error("Watch: '%s' failed: %s", binding.task, e)
                logger.debug("Watch failure details", exc_info=True)
                return e
        return None

    def _emit(self, binding: WatchBinding, error: BaseException | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(binding, error)
            except Exception:
                logger.exception("Watch completion listener failed")

    # ---- introspection (tests / status) ----

    def state_of(self, binding: WatchBinding) -> BindingState:
        with self._cond:
            for slot in self._slots:
                if slot.binding == binding:
                    return slot.state
        raise KeyError(f"Unknown binding: {binding}")

    def run_count(self, binding: WatchBinding) -> int:
        with self._cond:
            for slot in self._slots:
                if slot.binding == binding:
                    return slot.runs
        raise KeyError(f"Unknown binding: {binding}")

    def wait_idle(self, timeout: float | None = None) -> bool:
        with self._cond:
            return self._cond.wait_for(
                lambda: all(s.state == BindingState.IDLE for s in self._slots),
                timeout=timeout,
            )
