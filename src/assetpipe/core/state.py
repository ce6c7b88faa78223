# src/assetpipe/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..config import Settings
from ..serve.dev_server import DevServer
from ..serve.reload_bridge import ReloadBridge
from ..tasks.task_registry import TaskRegistry
from ..transforms.images import ImageOptimizer
from ..watch.coordinator import WatchCoordinator


@dataclass
class PipelineState:
    # Everything a task body may need; built once by cli.bootstrap.create_pipeline().
    settings: Settings
    registry: TaskRegistry
    optimizer: ImageOptimizer
    coordinator: WatchCoordinator
    server: DevServer
    bridge: ReloadBridge

    # Set by SIGTERM (or tests) to end watch/serve sessions.
    stop_event: threading.Event = field(default_factory=threading.Event)
