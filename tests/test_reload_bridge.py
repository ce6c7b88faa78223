# tests/test_reload_bridge.py

from __future__ import annotations

from assetpipe.serve.reload_bridge import ReloadBridge
from assetpipe.watch.bindings import WatchBinding
from assetpipe.watch.coordinator import WatchCoordinator
from .fakes import GatedRunner, RecordingBroadcaster

CSS = WatchBinding("css/*.css", "stylesheet")
HTML = WatchBinding("index.html", "markup")


def test_successful_run_reloads_exactly_once() -> None:
    broadcaster = RecordingBroadcaster()
    coord = WatchCoordinator(GatedRunner(), [CSS, HTML], debounce=0)
    ReloadBridge(broadcaster).attach(coord)

    coord.notify_path("css/a.css")
    assert coord.wait_idle(5)

    assert broadcaster.calls == ["css/*.css"]


def test_failed_run_never_reloads() -> None:
    broadcaster = RecordingBroadcaster()
    coord = WatchCoordinator(GatedRunner(failing={"markup"}), [CSS, HTML], debounce=0)
    ReloadBridge(broadcaster).attach(coord)

    coord.notify_path("index.html")
    assert coord.wait_idle(5)

    assert broadcaster.calls == []


def test_coalesced_runs_reload_once_per_completion() -> None:
    broadcaster = RecordingBroadcaster()
    runner = GatedRunner(gated=True)
    coord = WatchCoordinator(runner, [CSS], debounce=0)
    ReloadBridge(broadcaster).attach(coord)

    coord.notify_path("css/a.css")
    assert runner.started.wait(5)
    coord.notify_path("css/a.css")
    coord.notify_path("css/b.css")
    runner.release()
    assert coord.wait_idle(5)

    assert broadcaster.calls == ["css/*.css", "css/*.css"]
