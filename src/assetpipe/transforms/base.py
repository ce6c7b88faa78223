# src/assetpipe/transforms/base.py

"""
Shared plumbing for transforms: source discovery, text decoding, atomic writes.

A transform owns exactly one output subtree (dist/css, dist/js, ...). write_output()
refuses paths outside that subtree, which is what lets transforms run in parallel
without coordinating.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from ..core.errors import TransformFailure

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TransformReport:
    transform: str
    written: list[Path] = field(default_factory=list)
    skipped: bool = False
    reason: str = ""

    def summary(self) -> str:
        if self.skipped:
            return f"{self.transform}: skipped ({self.reason})"
        return f"{self.transform}: {len(self.written)} file(s) written"


def collect_sources(root: Path, pattern: str) -> list[Path]:
    """Files matching `pattern` under `root`, sorted. A missing directory is just an empty set."""
    if not root.is_dir():
        return []
    return sorted(p for p in root.glob(pattern) if p.is_file())


def read_text(transform: str, path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as e:
        raise TransformFailure(transform, f"not valid UTF-8 ({e.reason})", path=path) from e


def _ensure_inside(dest_root: Path, target: Path) -> None:
    root = dest_root.resolve()
    resolved = target.resolve()
    if resolved != root and root not in resolved.parents:
        raise ValueError(f"Refusing to write {target} outside of {dest_root}")


def write_output(dest_root: Path, relative: str | Path, data: str | bytes) -> Path:
    """Atomically write `data` to dest_root/relative (temp file + os.replace)."""
    target = dest_root / relative
    _ensure_inside(dest_root, target)
    target.parent.mkdir(parents=True, exist_ok=True)

    payload = data.encode("utf-8") if isinstance(data, str) else data
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.debug("Wrote %s (%d bytes)", target, len(payload))
    return target
