# src/assetpipe/transforms/script.py

from __future__ import annotations

import logging
from pathlib import Path

import rjsmin

from ..core.errors import TransformFailure
from ..core.globs import glob_base
from .base import TransformReport, collect_sources, read_text, write_output

logger = logging.getLogger(__name__)

NAME = "script"


def minify_scripts(
    root: Path,
    pattern: str,
    dest: Path,
    *,
    bundle: str = "",
    keep_license_comments: bool = True,
) -> TransformReport:
    """Minify every script matching `pattern` into `dest` (rjsmin never renames identifiers)."""
    report = TransformReport(transform=NAME)
    sources = collect_sources(root, pattern)
    if not sources:
        report.skipped = True
        report.reason = f"no sources match {pattern}"
        logger.info("%s: nothing matches %s", NAME, pattern)
        return report

    base = root / glob_base(pattern)
    minified: list[tuple[Path, str]] = []
    for src in sources:
        text = read_text(NAME, src)
        try:
            out = rjsmin.jsmin(text, keep_bang_comments=keep_license_comments)
        except Exception as e:
            raise TransformFailure(NAME, str(e), path=src) from e
        minified.append((src, out))

    if bundle:
        # ";" guards against a source that ends without a statement terminator.
        joined = ";\n".join(out.rstrip().rstrip(";") for _, out in minified) + ";"
        report.written.append(write_output(dest, bundle, joined))
    else:
        for src, out in minified:
            report.written.append(write_output(dest, src.relative_to(base), out))

    logger.info("%s: %s", NAME, report.summary())
    return report
