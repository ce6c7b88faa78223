# src/assetpipe/cli/sessions.py

"""
Long-running task bodies: `watch` and `serve`.

Both block until Ctrl+C (KeyboardInterrupt) or state.stop_event is set, then
release what they acquired. The dev server is started before the watcher so a
port conflict fails the serve task without leaving observers behind.
"""

from __future__ import annotations

import logging

from ..core.state import PipelineState

logger = logging.getLogger(__name__)


def _wait_for_stop(state: PipelineState) -> None:
    try:
        state.stop_event.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping...")


def run_watch(state: PipelineState) -> None:
    state.coordinator.start()
    logger.info("Watching for changes. Press Ctrl+C to stop.")
    try:
        _wait_for_stop(state)
    finally:
        state.coordinator.stop()


def run_serve(state: PipelineState) -> None:
    # ServerBindError propagates: fatal for this task, earlier tasks keep their output.
    state.server.start()
    try:
        state.coordinator.start()
        logger.info("Dev server ready at %s. Press Ctrl+C to stop.", state.server.url)
        _wait_for_stop(state)
    finally:
        state.coordinator.stop()
        state.server.stop()
