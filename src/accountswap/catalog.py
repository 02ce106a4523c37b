"""
Saved-account catalog.

One JSON snapshot per account in a single flat directory:

    ~/.accountswap/accounts/
    ├── alice@example.com.json
    └── bob@example.com.json

Saving an account that already exists overwrites it (last write wins).
Only ``*.json`` files directly inside the directory are ever listed,
read, or removed.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .config import StateConfig
from .errors import SnapshotNotFoundError, StoreNotFoundError
from .keystore import KeyStore
from .models import Marker, Snapshot, utcnow
from .restore import load_snapshot

logger = logging.getLogger("accountswap.catalog")

SNAPSHOT_SUFFIX = ".json"


class BackupContent(BaseModel):
    """A snapshot file's name and decoded content, for export/import."""

    filename: str
    content: dict[str, Any]


class FailedImport(BaseModel):
    filename: str
    error: str


class ImportResult(BaseModel):
    restored_count: int = 0
    failed: list[FailedImport] = Field(default_factory=list)


def _check_name(name: str) -> str:
    if not name or name.startswith(".") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid account name: {name!r}")
    return name


class AccountCatalog:
    """Manages account snapshots on disk.

    Args:
        directory: Folder holding the snapshot files.
        config: Managed-field configuration used to read and write snapshots.
    """

    def __init__(self, directory: Path, config: Optional[StateConfig] = None) -> None:
        self.directory = Path(directory).expanduser()
        self.config = config or StateConfig()

    def path_for(self, name: str) -> Path:
        return self.directory / f"{_check_name(name)}{SNAPSHOT_SUFFIX}"

    def _snapshot_files(self) -> list[Path]:
        if not self.directory.is_dir():
            return []
        return [
            p for p in self.directory.iterdir()
            if p.is_file()
            and p.suffix == SNAPSHOT_SUFFIX
            and not p.name.startswith(".")
        ]

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def recent_entries(self, limit: Optional[int] = None) -> list[tuple[str, float]]:
        """(name, mtime) pairs, most recently modified first.

        Args:
            limit: Return at most this many entries.

        Raises:
            ValueError: If *limit* is negative.
        """
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        stamped = []
        for path in self._snapshot_files():
            try:
                stamped.append((path.stem, path.stat().st_mtime))
            except OSError:
                continue
        stamped.sort(key=lambda item: item[1], reverse=True)
        if limit is not None:
            stamped = stamped[:limit]
        return stamped

    def list_recent(self, limit: Optional[int] = None) -> list[str]:
        """Account names, most recently modified first."""
        return [name for name, _ in self.recent_entries(limit)]

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def load(self, name: str) -> Snapshot:
        """Load and validate the snapshot saved under *name*.

        Raises:
            SnapshotNotFoundError: If no such account is saved.
            SnapshotParseError: If the file is malformed.
        """
        return load_snapshot(self.path_for(name), self.config)

    def save(self, snapshot: Snapshot) -> tuple[Path, bool]:
        """Write *snapshot* under its name, replacing any previous copy.

        Returns:
            tuple: (path written, whether an existing file was overwritten).
        """
        if not snapshot.name:
            raise ValueError("Snapshot has no name")
        path = self.path_for(snapshot.name)
        overwritten = path.exists()
        self.directory.mkdir(parents=True, exist_ok=True)
        doc = snapshot.to_document(self.config)
        path.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("%s account snapshot %s", "Updated" if overwritten else "Created", path)
        return path, overwritten

    def delete(self, name: str) -> Path:
        """Remove one saved account.

        Raises:
            SnapshotNotFoundError: If no such account is saved.
        """
        path = self.path_for(name)
        if not path.is_file():
            raise SnapshotNotFoundError("delete account", name, "no saved snapshot")
        path.unlink()
        logger.info("Deleted account snapshot %s", path)
        return path

    def clear_all(self) -> int:
        """Remove every saved account.

        Returns:
            int: Number of snapshot files deleted.
        """
        deleted = 0
        for path in self._snapshot_files():
            path.unlink()
            deleted += 1
        logger.info("Cleared %d account snapshot(s) from %s", deleted, self.directory)
        return deleted

    # ------------------------------------------------------------------
    # Capture from a live store
    # ------------------------------------------------------------------

    def capture(self, store_path: Path, name: Optional[str] = None, timeout: float = 5.0) -> Snapshot:
        """Build a snapshot of the account currently signed in to *store_path*.

        Args:
            store_path: The primary state store.
            name: Account name. Defaults to the email in the auth-status row.
            timeout: Seconds to wait on a locked store.

        Raises:
            StoreNotFoundError: If the store is missing or nobody is signed in.
            StoreIOError: If the store cannot be read.
        """
        auth_key = self.config.reserved.auth_status
        with KeyStore.open(store_path, timeout=timeout) as store:
            values = store.read_many(self.config.field_keys)
            raw_marker = store.read(self.config.reserved.marker)
            marker = Marker.parse(raw_marker) if raw_marker is not None else None

        if auth_key not in values:
            raise StoreNotFoundError("capture account", auth_key, "no signed-in account")
        if name is None:
            name = account_email(values[auth_key])
            if not name:
                raise StoreNotFoundError("capture account", auth_key, "auth status has no email")

        return Snapshot(name=name, timestamp=utcnow(), values=values, marker=marker)

    def backup_current(
        self, store_path: Path, name: Optional[str] = None, timeout: float = 5.0
    ) -> tuple[Snapshot, Path, bool]:
        """Capture the signed-in account and save it.

        Returns:
            tuple: (snapshot, path written, whether it overwrote an older copy).
        """
        snapshot = self.capture(store_path, name=name, timeout=timeout)
        path, overwritten = self.save(snapshot)
        return snapshot, path, overwritten

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_all(self) -> list[BackupContent]:
        """Every readable snapshot file with its decoded content.

        Unreadable or corrupt files are skipped with a warning.
        """
        exported = []
        for path in sorted(self._snapshot_files()):
            try:
                content = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable snapshot %s: %s", path.name, exc)
                continue
            if not isinstance(content, dict):
                logger.warning("Skipping snapshot %s: not a JSON object", path.name)
                continue
            exported.append(BackupContent(filename=path.name, content=content))
        return exported

    def import_all(self, entries: list[BackupContent]) -> ImportResult:
        """Write exported snapshots back into the catalog directory."""
        result = ImportResult()
        self.directory.mkdir(parents=True, exist_ok=True)
        for entry in entries:
            try:
                if not entry.filename.endswith(SNAPSHOT_SUFFIX):
                    raise ValueError("not a snapshot file name")
                path = self.path_for(entry.filename[: -len(SNAPSHOT_SUFFIX)])
                path.write_text(
                    json.dumps(entry.content, indent=2, ensure_ascii=False), encoding="utf-8"
                )
            except (OSError, ValueError) as exc:
                logger.warning("Failed to import %s: %s", entry.filename, exc)
                result.failed.append(FailedImport(filename=entry.filename, error=str(exc)))
                continue
            result.restored_count += 1
        return result


def account_email(auth_value: str) -> Optional[str]:
    """Email address from an auth-status JSON value, if it has one."""
    try:
        data = json.loads(auth_value)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    email = data.get("email")
    return email if isinstance(email, str) and email else None
