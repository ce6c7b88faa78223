# src/assetpipe/core/globs.py

"""Glob helpers shared by transforms (where to read) and the watcher (what to react to)."""

from __future__ import annotations

from fnmatch import fnmatchcase


def glob_base(pattern: str) -> str:
    """Leading path segments of a glob that contain no wildcards ("css/*.css" -> "css")."""
    parts: list[str] = []
    for seg in pattern.split("/"):
        if any(ch in seg for ch in "*?["):
            break
        parts.append(seg)
    else:
        # No wildcard at all: the pattern names a file, its parent is the base.
        parts = parts[:-1]
    return "/".join(p for p in parts if p not in ("", "."))


def _split(path: str) -> list[str]:
    return [s for s in path.replace("\\", "/").split("/") if s not in ("", ".")]


def _match(pat: list[str], parts: list[str]) -> bool:
    if not pat:
        return not parts
    head = pat[0]
    if head == "**":
        return any(_match(pat[1:], parts[i:]) for i in range(len(parts) + 1))
    if not parts:
        return False
    return fnmatchcase(parts[0], head) and _match(pat[1:], parts[1:])


def glob_match(pattern: str, path: str) -> bool:
    """
    Match a root-relative posix path against a glob.

    `*`, `?` and `[...]` stay within one path segment; a `**` segment spans any
    number of segments (including none).
    """
    return _match(_split(pattern), _split(path))
