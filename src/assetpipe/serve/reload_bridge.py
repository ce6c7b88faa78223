# src/assetpipe/serve/reload_bridge.py

from __future__ import annotations

import logging

from ..core.ports import ReloadBroadcaster
from ..watch.bindings import WatchBinding
from ..watch.coordinator import WatchCoordinator

logger = logging.getLogger(__name__)


class ReloadBridge:
    """
    Completion listener that turns successful watched runs into browser reloads.

    One successful completion -> exactly one broadcast. A failed run never
    reloads: viewers keep the last good output.
    """

    def __init__(self, broadcaster: ReloadBroadcaster) -> None:
        self._broadcaster = broadcaster

    def attach(self, coordinator: WatchCoordinator) -> None:
        coordinator.add_listener(self)

    def __call__(self, binding: WatchBinding, error: BaseException | None) -> None:
        if error is not None:
            logger.warning("Not reloading: '%s' failed", binding.task)
            return
        logger.info("Reloading browsers after '%s'", binding.task)
        self._broadcaster.reload(binding.pattern)
