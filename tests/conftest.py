"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def isolate_settings(tmp_path, monkeypatch):
    """Point XDG_CONFIG_HOME at a temp directory and return the settings file path."""
    config_home = tmp_path / "config"
    config_home.mkdir()
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    return config_home / "cachedetect" / "settings.json"


@pytest.fixture
def make_tree(tmp_path) -> Callable[[dict[str, int]], Path]:
    """Build a file tree under ``tmp_path/root`` from ``{relative_path: size}``."""

    def _make(files: dict[str, int]) -> Path:
        root = tmp_path / "root"
        root.mkdir(exist_ok=True)
        for rel, size in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
        return root

    return _make
