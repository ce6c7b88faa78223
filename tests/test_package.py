# tests/test_package.py

from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "assetpipe.core.errors",
        "assetpipe.core.ports",
        "assetpipe.tasks.task_registry",
        "assetpipe.watch.coordinator",
        "assetpipe.serve.dev_server",
    ],
)
def test_module_docstrings_are_attached(module: str) -> None:
    assert importlib.import_module(module).__doc__
