# tests/conftest.py

from __future__ import annotations

import os
from pathlib import Path

import pytest

from assetpipe.cli.bootstrap import create_pipeline
from assetpipe.config import Settings
from assetpipe.core.state import PipelineState

CSS_SOURCE = """/* site styles */
body {
    color: red;
    margin: 0 auto;
}

.nav  >  a:hover {
    text-decoration: underline;
}
"""

INDEX_HTML = """<!DOCTYPE html>
<html>
  <head>
    <title>Demo</title>
    <link rel="stylesheet" href="css/a.css">
  </head>
  <body>
    <h1>Hello   <b>world</b></h1>
    <pre>
  keep   this
    </pre>
  </body>
</html>
"""


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    """
    Minimal source tree: css/a.css and index.html, no js, no assets.

    Each test adds what it needs on top of this.
    """
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "css" / "a.css").write_text(CSS_SOURCE, encoding="utf-8")
    (root / "index.html").write_text(INDEX_HTML, encoding="utf-8")
    return root


@pytest.fixture()
def settings(project: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings pointing at the temp project; port 0 so the dev server never collides."""
    for name in list(os.environ):
        if name.startswith("ASSETPIPE_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("ASSETPIPE_ROOT", str(project))
    monkeypatch.setenv("ASSETPIPE_PORT", "0")
    monkeypatch.setenv("ASSETPIPE_WATCH_DEBOUNCE", "0")
    monkeypatch.setenv("ASSETPIPE_LOG_DIR", str(tmp_path / "logs"))
    return Settings.from_env()


@pytest.fixture()
def pipeline(settings: Settings):
    """Fully wired PipelineState (real registry/coordinator/server), shut down after the test."""
    state: PipelineState = create_pipeline(settings=settings)
    state.optimizer.ensure_ready()
    yield state
    state.stop_event.set()
    state.coordinator.stop(timeout=5.0)
    state.server.stop()
