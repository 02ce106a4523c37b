"""Tests for the asyncio wrappers."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from accountswap.catalog import AccountCatalog
from accountswap.cleanup import AccountCleaner
from accountswap.config import AUTH_STATUS
from accountswap.paths import StorePaths
from accountswap.restore import AccountRestorer
from accountswap.tasks import capture_async, clear_async, restore_async

AUTH_VALUE = json.dumps({"email": "async@example.com"})


class TestAsyncWrappers:

    @pytest.mark.asyncio
    async def test_capture_clear_restore(self, tmp_path: Path, make_store, read_rows) -> None:
        store = make_store({AUTH_STATUS: AUTH_VALUE})
        paths = StorePaths.from_primary(store)
        catalog = AccountCatalog(tmp_path / "accounts")

        snapshot, snap_path, overwritten = await capture_async(catalog, store)
        assert snapshot.name == "async@example.com"
        assert overwritten is False

        cleared = await clear_async(AccountCleaner(), paths)
        assert cleared.primary.count == 1
        assert AUTH_STATUS not in read_rows(store)

        restored = await restore_async(AccountRestorer(), snap_path, paths)
        assert restored.primary.count == 1
        assert read_rows(store)[AUTH_STATUS] == AUTH_VALUE
