# tests/test_globs.py

from __future__ import annotations

from pathlib import Path

import pytest

from assetpipe.core.globs import glob_base, glob_match
from assetpipe.watch.fs_source import plan_watches


@pytest.mark.parametrize(
    ("pattern", "path", "expected"),
    [
        ("css/*.css", "css/a.css", True),
        ("css/*.css", "css/vendor/a.css", False),
        ("css/*.css", "js/a.css", False),
        ("css/**/*.css", "css/a.css", True),
        ("css/**/*.css", "css/vendor/deep/a.css", True),
        ("assets/images/**/*", "assets/images/logo.png", True),
        ("index.html", "index.html", True),
        ("index.html", "about.html", False),
        ("js/?.js", "js/a.js", True),
        ("js/?.js", "js/ab.js", False),
    ],
)
def test_glob_match(pattern: str, path: str, expected: bool) -> None:
    assert glob_match(pattern, path) is expected


def test_glob_match_normalizes_separators() -> None:
    assert glob_match("css/*.css", "./css\\a.css")


@pytest.mark.parametrize(
    ("pattern", "base"),
    [
        ("css/*.css", "css"),
        ("assets/images/**/*", "assets/images"),
        ("*.css", ""),
        ("index.html", ""),
        ("pages/about.html", "pages"),
    ],
)
def test_glob_base(pattern: str, base: str) -> None:
    assert glob_base(pattern) == base


def test_plan_watches_uses_base_directories(tmp_path: Path) -> None:
    (tmp_path / "css").mkdir()
    (tmp_path / "assets" / "images").mkdir(parents=True)

    plan = plan_watches(tmp_path, ["css/*.css", "index.html", "assets/images/**/*"])

    assert plan == {
        tmp_path / "css": False,
        tmp_path: False,
        tmp_path / "assets" / "images": True,
    }


def test_plan_watches_climbs_to_existing_ancestor(tmp_path: Path) -> None:
    (tmp_path / "assets").mkdir()

    plan = plan_watches(tmp_path, ["assets/fonts/**/*", "js/*.js"])

    assert plan == {tmp_path / "assets": True, tmp_path: True}
