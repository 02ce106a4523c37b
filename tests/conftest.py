"""Shared test fixtures for accountswap."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, Optional

import pytest

from accountswap.config import StateConfig


@pytest.fixture
def config() -> StateConfig:
    """The default managed-field configuration."""
    return StateConfig()


@pytest.fixture
def make_store(tmp_path: Path) -> Callable[..., Path]:
    """Factory that writes a state store with the given rows.

    Usage: ``make_store({"key": "value"}, name="state.vscdb")``.
    """

    def _make(rows: Optional[dict[str, str]] = None, name: str = "state.vscdb") -> Path:
        path = tmp_path / "globalStorage" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path))
        with conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS ItemTable "
                "(key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)"
            )
            for key, value in (rows or {}).items():
                conn.execute("INSERT INTO ItemTable (key, value) VALUES (?, ?)", (key, value))
        conn.close()
        return path

    return _make


@pytest.fixture
def read_rows() -> Callable[[Path], dict[str, str]]:
    """Return every row of a store as a dict, bypassing KeyStore."""

    def _read(path: Path) -> dict[str, str]:
        conn = sqlite3.connect(str(path))
        try:
            return dict(conn.execute("SELECT key, value FROM ItemTable").fetchall())
        finally:
            conn.close()

    return _read
