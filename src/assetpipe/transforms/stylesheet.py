# src/assetpipe/transforms/stylesheet.py

from __future__ import annotations

import logging
from pathlib import Path

import rcssmin

from ..core.errors import TransformFailure
from ..core.globs import glob_base
from .base import TransformReport, collect_sources, read_text, write_output

logger = logging.getLogger(__name__)

NAME = "stylesheet"


def minify_css(source: str, *, keep_license_comments: bool = True) -> str:
    # rcssmin only drops comments/whitespace and never merges or reorders rules,
    # so the output renders the same in every browser the input did (IE8 included).
    return rcssmin.cssmin(source, keep_bang_comments=keep_license_comments)


def minify_stylesheets(
    root: Path,
    pattern: str,
    dest: Path,
    *,
    bundle: str = "",
    keep_license_comments: bool = True,
) -> TransformReport:
    """
    Minify every stylesheet matching `pattern` (relative to `root`) into `dest`.

    Without `bundle`, each source keeps its relative name. With `bundle`, the sources
    are concatenated in sorted order and written as dest/<bundle>.
    """
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
            out = minify_css(text, keep_license_comments=keep_license_comments)
        except Exception as e:
            raise TransformFailure(NAME, str(e), path=src) from e
        minified.append((src, out))

    if bundle:
        joined = "\n".join(out for _, out in minified)
        report.written.append(write_output(dest, bundle, joined))
    else:
        for src, out in minified:
            report.written.append(write_output(dest, src.relative_to(base), out))

    logger.info("%s: %s", NAME, report.summary())
    return report
