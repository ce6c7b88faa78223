# src/assetpipe/cli/main.py

"""
CLI entrypoint.

`assetpipe` with no arguments runs the `default` task (build once, then serve with
live reload). Named tasks run one after another in the order given.

Exit codes: 0 success, 1 a task failed, 2 unknown task name.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys

from ..cli.bootstrap import create_pipeline
from ..config import get_settings
from ..core.errors import CapabilityUnavailableError, ParallelTaskError, PipelineError
from ..core.state import PipelineState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="assetpipe",
        description="Minify css/js/html, copy assets into dist/, watch and serve with live reload.",
    )
    parser.add_argument("tasks", nargs="*", metavar="TASK", help="Tasks to run (default: default)")
    parser.add_argument("--list", action="store_true", help="List available tasks and exit")
    parser.add_argument("--port", type=int, default=None, help="Dev server port (overrides ASSETPIPE_PORT)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug output on the console")
    return parser


def _report_failure(err: PipelineError) -> None:
    failures = err.leaf_failures() if isinstance(err, ParallelTaskError) else [err]
    print(f"\nBuild failed ({len(failures)} error(s)):", file=sys.stderr)
    for f in failures:
        print(f"  - {f}", file=sys.stderr)


def _shutdown(state: PipelineState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.coordinator.stop(timeout=2.0)
    except Exception:
        logger.debug("Watch shutdown failed.", exc_info=True)
    try:
        state.server.stop()
    except Exception:
        logger.debug("Dev server shutdown failed.", exc_info=True)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings = get_settings()
    if args.port is not None:
        settings = dataclasses.replace(settings, port=args.port)

    level_name = "DEBUG" if args.verbose else str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    state = create_pipeline(settings=settings)

    if args.list:
        print(state.registry.describe())
        return 0

    names = args.tasks or ["default"]
    unknown = [n for n in names if not state.registry.has(n)]
    if unknown:
        print(f"Unknown task(s): {', '.join(unknown)}. Use --list to see available tasks.", file=sys.stderr)
        return 2

    try:
        state.optimizer.ensure_ready()
    except CapabilityUnavailableError as e:
        logger.error("%s", e)
        return 1

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        state.stop_event.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (ValueError, OSError):
        # Not in the main thread, or the platform has no SIGTERM.
        pass

    try:
        for name in names:
            state.registry.run(name)
    except PipelineError as e:
        _report_failure(e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 130
    finally:
        _shutdown(state)

    return 0


if __name__ == "__main__":
    sys.exit(main())
