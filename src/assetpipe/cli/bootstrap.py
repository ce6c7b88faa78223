# src/assetpipe/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- takes settings once,
- wires the task registry, watch coordinator, dev server and reload bridge,
- defines every task (leaf transforms, groups, long-running sessions).
"""

from __future__ import annotations

import logging

from ..config import Settings, get_settings
from ..core.state import PipelineState
from ..serve.dev_server import DevServer
from ..serve.reload_bridge import ReloadBridge
from ..tasks.task_models import TaskKind
from ..tasks.task_registry import TaskRegistry
from ..transforms.assets import copy_assets
from ..transforms.images import ImageOptimizer
from ..transforms.markup import minify_markup
from ..transforms.script import minify_scripts
from ..transforms.stylesheet import minify_stylesheets
from ..watch.bindings import WatchBinding
from ..watch.coordinator import WatchCoordinator
from ..watch.fs_source import WatchdogChangeSource
from .sessions import run_serve, run_watch

logger = logging.getLogger(__name__)

BUILD_TASKS = ["stylesheet", "script", "markup", "asset-copy"]


def watch_bindings(settings: Settings) -> list[WatchBinding]:
    return [
        WatchBinding(settings.css_glob, "stylesheet"),
        WatchBinding(settings.js_glob, "script"),
        WatchBinding(settings.relative(settings.entry_document), "markup"),
        WatchBinding(settings.relative(settings.images_dir) + "/**/*", "asset-copy"),
        WatchBinding(settings.relative(settings.fonts_dir) + "/**/*", "asset-copy"),
    ]


def _define_tasks(state: PipelineState) -> None:
    s = state.settings
    reg = state.registry

    reg.define(
        "stylesheet",
        TaskKind.LEAF,
        lambda: minify_stylesheets(
            s.root,
            s.css_glob,
            s.dist_dir / "css",
            bundle=s.css_bundle,
            keep_license_comments=s.keep_license_comments,
        ),
        help_text=f"Minify {s.css_glob} into dist/css.",
        aliases=["minify-css"],
    )
    reg.define(
        "script",
        TaskKind.LEAF,
        lambda: minify_scripts(
            s.root,
            s.js_glob,
            s.dist_dir / "js",
            bundle=s.js_bundle,
            keep_license_comments=s.keep_license_comments,
        ),
        help_text=f"Minify {s.js_glob} into dist/js.",
        aliases=["minify-js"],
    )
    reg.define(
        "markup",
        TaskKind.LEAF,
        lambda: minify_markup(s.entry_document, s.dist_dir),
        help_text=f"Collapse whitespace in {s.entry_document.name} into dist/.",
        aliases=["minify-html"],
    )
    reg.define(
        "asset-copy",
        TaskKind.LEAF,
        lambda: copy_assets(s.images_dir, s.fonts_dir, s.dist_dir / "assets", state.optimizer),
        help_text="Optimize images and copy fonts into dist/assets (missing folders are skipped).",
        aliases=["copy-assets"],
    )
    reg.define("build", TaskKind.PARALLEL, BUILD_TASKS, help_text="Run every one-shot transform.")
    reg.define(
        "watch",
        TaskKind.LEAF,
        lambda: run_watch(state),
        help_text="Re-run transforms when their sources change.",
    )
    reg.define(
        "serve",
        TaskKind.LEAF,
        lambda: run_serve(state),
        help_text=f"Serve dist/ on port {s.port} with live reload while watching sources.",
    )
    reg.define("default", TaskKind.SERIES, ["build", "serve"], help_text="Build once, then serve.")


def create_pipeline(*, settings: Settings | None = None) -> PipelineState:
    """
    Create PipelineState from the provided settings.

    Keeping settings injectable makes the pipeline easy to test against a temp tree.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    registry = TaskRegistry(max_workers=settings.parallel_workers)
    bindings = watch_bindings(settings)
    source = WatchdogChangeSource(settings.root, [b.pattern for b in bindings])
    coordinator = WatchCoordinator(
        registry, bindings, debounce=settings.watch_debounce, source=source
    )
    server = DevServer(settings.dist_dir, host=settings.host, port=settings.port)
    bridge = ReloadBridge(server)
    bridge.attach(coordinator)

    state = PipelineState(
        settings=settings,
        registry=registry,
        optimizer=ImageOptimizer(quality=settings.image_quality),
        coordinator=coordinator,
        server=server,
        bridge=bridge,
    )
    _define_tasks(state)
    logger.debug("Pipeline ready: root=%s dist=%s", settings.root, settings.dist_dir)
    return state
