"""
Single-key access to the host app's SQLite state store.

The store is one ``ItemTable(key, value)`` table. Each call commits on its
own; nothing here spans a transaction across calls. The desktop app may
hold the file open while we work, so lock contention surfaces as a
transient ``StoreIOError`` rather than an unhandled sqlite exception.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Iterable, Optional

from .errors import StoreIOError, StoreNotFoundError

logger = logging.getLogger("accountswap.keystore")

TABLE = "ItemTable"


def _is_lock_error(exc: sqlite3.Error) -> bool:
    text = str(exc).lower()
    return "locked" in text or "busy" in text


def _io_error(operation: str, key: Optional[str], exc: sqlite3.Error) -> StoreIOError:
    return StoreIOError(operation, key, exc, transient=_is_lock_error(exc))


class KeyStore:
    """An open state store file.

    Use :meth:`open` rather than the constructor. Works as a context
    manager that closes the connection on exit.
    """

    def __init__(self, path: Path, conn: sqlite3.Connection) -> None:
        self.path = path
        self._conn = conn

    @classmethod
    def open(cls, path: Path, timeout: float = 5.0) -> "KeyStore":
        """Open an existing store file.

        Args:
            path: Path to the ``state.vscdb`` file.
            timeout: Seconds sqlite waits on a locked database.

        Raises:
            StoreNotFoundError: If *path* does not exist.
            StoreIOError: If sqlite cannot open the file.
        """
        path = Path(path)
        if not path.is_file():
            raise StoreNotFoundError("open store", str(path), "file does not exist")
        try:
            conn = sqlite3.connect(str(path), timeout=timeout)
        except sqlite3.Error as exc:
            raise _io_error("open store", str(path), exc) from exc
        # Probe the table so a foreign or locked file fails here, not mid-operation.
        try:
            conn.execute(f"SELECT 1 FROM {TABLE} LIMIT 1").fetchone()
        except sqlite3.Error as exc:
            conn.close()
            raise _io_error("open store", str(path), exc) from exc
        logger.debug("Opened store %s", path)
        return cls(path, conn)

    @classmethod
    def create(cls, path: Path) -> "KeyStore":
        """Create (or open) a store file and make sure the table exists."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(str(path))
            with conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {TABLE} "
                    "(key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)"
                )
        except sqlite3.Error as exc:
            raise _io_error("create store", str(path), exc) from exc
        return cls(path, conn)

    def __enter__(self) -> "KeyStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    def read(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or None if there is no row."""
        try:
            row = self._conn.execute(
                f"SELECT value FROM {TABLE} WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise _io_error("read", key, exc) from exc
        if row is None:
            return None
        value = row[0]
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        return value

    def read_many(self, keys: Iterable[str]) -> dict[str, str]:
        """Read several keys; absent keys are left out of the result."""
        found: dict[str, str] = {}
        for key in keys:
            value = self.read(key)
            if value is not None:
                found[key] = value
        return found

    def upsert(self, key: str, value: str) -> None:
        """Insert or replace the row for *key*."""
        try:
            with self._conn:
                self._conn.execute(
                    f"INSERT OR REPLACE INTO {TABLE} (key, value) VALUES (?, ?)",
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise _io_error("upsert", key, exc) from exc

    def delete(self, key: str) -> bool:
        """Delete the row for *key*.

        Returns:
            bool: True if a row was removed.
        """
        try:
            with self._conn:
                cursor = self._conn.execute(f"DELETE FROM {TABLE} WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise _io_error("delete", key, exc) from exc
        return cursor.rowcount > 0
