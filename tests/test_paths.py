"""Tests for store path resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from accountswap import paths as paths_mod
from accountswap.config import AppSettings
from accountswap.errors import StoreNotFoundError
from accountswap.paths import StorePaths, default_data_dir, resolve_store_paths


class TestStorePaths:
    def test_replica_name(self, tmp_path: Path) -> None:
        paths = StorePaths.from_primary(tmp_path / "state.vscdb")
        assert paths.replica == tmp_path / "state.vscdb.backup"

    def test_custom_suffix(self, tmp_path: Path) -> None:
        paths = StorePaths.from_primary(tmp_path / "state.vscdb", ".bak")
        assert paths.replica == tmp_path / "state.vscdb.bak"

    def test_replica_if_present(self, make_store) -> None:
        primary = make_store()
        paths = StorePaths.from_primary(primary)
        assert paths.replica_if_present() is None
        make_store(name="state.vscdb.backup")
        assert paths.replica_if_present() == paths.replica


class TestResolve:
    def test_explicit_store(self, make_store) -> None:
        primary = make_store()
        resolved = resolve_store_paths(AppSettings(store_path=primary))
        assert resolved.primary == primary

    def test_missing_store(self, tmp_path: Path) -> None:
        with pytest.raises(StoreNotFoundError):
            resolve_store_paths(AppSettings(store_path=tmp_path / "missing.vscdb"))

    def test_linux_default_honours_xdg(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(paths_mod.sys, "platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_data_dir() == tmp_path / "Antigravity" / "User" / "globalStorage"

    def test_windows_default_uses_appdata(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr(paths_mod.sys, "platform", "win32")
        monkeypatch.setenv("APPDATA", str(tmp_path))
        assert default_data_dir() == tmp_path / "Antigravity" / "User" / "globalStorage"
