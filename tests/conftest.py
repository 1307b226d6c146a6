"""Shared fixtures for userlist_sync tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable

import pytest

from userlist_sync.config import SETTINGS_FILE_ENV, AppSettings, PathsConfig, ReloadConfig


@pytest.fixture(autouse=True)
def isolated_settings_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's environment and the repo's settings.yaml out of tests."""

    for name in list(os.environ):
        if name.startswith("USERLIST_SYNC_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv(SETTINGS_FILE_ENV, str(tmp_path / "no-settings.yaml"))


@pytest.fixture
def reload_log(tmp_path: Path) -> Path:
    return tmp_path / "reloads.log"


@pytest.fixture
def make_settings(tmp_path: Path, reload_log: Path) -> Callable[..., AppSettings]:
    """Build settings rooted in tmp_path; keyword args override the reload section."""

    def _make(**reload_overrides: object) -> AppSettings:
        reload_fields: dict[str, object] = {"command": f"echo reload >> '{reload_log}'"}
        reload_fields.update(reload_overrides)
        return AppSettings(
            paths=PathsConfig(
                userlist_path=tmp_path / "pgbouncer" / "userlist.txt",
                reload_trigger_file=tmp_path / "run" / "userlist.trigger",
            ),
            exclude=[],
            reload=ReloadConfig(**reload_fields),
        )

    return _make

