# src/assetpipe/transforms/markup.py

from __future__ import annotations

import logging
import re
from pathlib import Path

from ..core.errors import MissingEntryDocumentError
from .base import TransformReport, read_text, write_output

logger = logging.getLogger(__name__)

NAME = "markup"

# Bodies where whitespace is significant (or is code); copied through untouched.
_PROTECTED = re.compile(
    r"<(pre|textarea|script|style)\b[^>]*>.*?</\1\s*>|<!--.*?-->",
    re.IGNORECASE | re.DOTALL,
)

# Block-level elements only: whitespace next to them never renders. Inline and
# replaced elements (select, textarea, video, iframe, script, ...) are left out,
# so the space around them is collapsed to one instead of removed.
_BLOCK_TAGS = (
    "!doctype|html|head|body|title|meta|link|base|div|p|ul|ol|li|dl|dt|dd|table|caption|"
    "colgroup|col|thead|tbody|tfoot|tr|td|th|header|footer|nav|section|article|aside|main|"
    "h[1-6]|form|fieldset|legend|figure|figcaption|blockquote|address|hr|br|pre"
)

_AROUND_BLOCK = re.compile(rf"\s*(</?(?:{_BLOCK_TAGS})\b[^>]*>)\s*", re.IGNORECASE)
_WS_RUN = re.compile(r"\s+")


def _collapse(fragment: str) -> str:
    fragment = _WS_RUN.sub(" ", fragment)
    return _AROUND_BLOCK.sub(r"\1", fragment)


def collapse_whitespace(html: str) -> str:
    """
    Collapse insignificant whitespace.

    Runs of whitespace become one space, whitespace around block-level tags is
    removed. <pre>, <textarea>, <script>, <style> and comments are kept verbatim.
    """
    out: list[str] = []
    pos = 0
    for m in _PROTECTED.finditer(html):
        out.append(_collapse(html[pos:m.start()]))
        out.append(m.group(0))
        pos = m.end()
    out.append(_collapse(html[pos:]))
    return "".join(out).strip()


def minify_markup(entry: Path, dest: Path) -> TransformReport:
    """Minify the single entry document into dest/<entry name>. The entry is mandatory."""
    if not entry.is_file():
        raise MissingEntryDocumentError(entry)

    report = TransformReport(transform=NAME)
    html = read_text(NAME, entry)
    report.written.append(write_output(dest, entry.name, collapse_whitespace(html)))
    logger.info("%s: %s", NAME, report.summary())
    return report
