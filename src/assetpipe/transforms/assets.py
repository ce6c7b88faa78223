# src/assetpipe/transforms/assets.py

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from ..core.errors import TransformFailure
from .base import TransformReport, write_output
from .images import ImageOptimizer

logger = logging.getLogger(__name__)

NAME = "asset-copy"


def _walk(src_dir: Path) -> list[Path]:
    return sorted(p for p in src_dir.rglob("*") if p.is_file())


def _read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise TransformFailure(NAME, f"cannot read: {e}", path=path) from e


def _copy_tree(
    category: str,
    src_dir: Path,
    dest_dir: Path,
    convert: Callable[[Path, bytes], bytes] | None = None,
) -> TransformReport:
    report = TransformReport(transform=f"{NAME}:{category}")
    if not src_dir.is_dir():
        report.skipped = True
        report.reason = f"{src_dir} does not exist"
        logger.info("%s: no %s directory, skipping", NAME, category)
        return report

    for src in _walk(src_dir):
        data = _read_bytes(src)
        if convert is not None:
            data = convert(src, data)
        try:
            report.written.append(write_output(dest_dir, src.relative_to(src_dir), data))
        except OSError as e:
            raise TransformFailure(NAME, f"cannot write: {e}", path=src) from e

    logger.info("%s", report.summary())
    return report


def copy_images(src_dir: Path, dest_dir: Path, optimizer: ImageOptimizer) -> TransformReport:
    """Copy images, passing each through the optimizer. Absent directory -> skipped."""
    return _copy_tree("images", src_dir, dest_dir, optimizer.optimize)


def copy_fonts(src_dir: Path, dest_dir: Path) -> TransformReport:
    """Copy fonts verbatim. Absent directory -> skipped."""
    return _copy_tree("fonts", src_dir, dest_dir)


def copy_assets(
    images_dir: Path,
    fonts_dir: Path,
    dest_root: Path,
    optimizer: ImageOptimizer,
) -> list[TransformReport]:
    """
    Copy both asset categories into dest_root/images and dest_root/fonts.

    The categories are independent: a failure in one does not stop the other,
    and failures of both are reported together.
    """
    steps: list[tuple[str, Callable[[], TransformReport]]] = [
        ("images", lambda: copy_images(images_dir, dest_root / "images", optimizer)),
        ("fonts", lambda: copy_fonts(fonts_dir, dest_root / "fonts")),
    ]

    reports: list[TransformReport] = []
    errors: list[TransformFailure] = []
    for category, step in steps:
        try:
            reports.append(step())
        except TransformFailure as e:
            logger.error("%s: %s failed: %s", NAME, category, e)
            errors.append(e)

    if errors:
        raise TransformFailure(NAME, "; ".join(str(e) for e in errors))
    return reports
