"""
Locating the host app's state store and its replica.

The app keeps ``state.vscdb`` under its global storage directory and an
independent ``state.vscdb.backup`` beside it. The two are never kept in
sync by the app; we edit each one separately.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .config import AppSettings
from .errors import StoreNotFoundError

logger = logging.getLogger("accountswap.paths")

APP_DIR_NAME = "Antigravity"
STORE_FILENAME = "state.vscdb"


class StorePaths(BaseModel):
    """Primary store path plus the optional replica path."""

    primary: Path
    replica: Optional[Path] = None

    @classmethod
    def from_primary(cls, primary: Path, suffix: str = ".backup") -> "StorePaths":
        """Derive the replica as ``<primary><suffix>`` (``state.vscdb.backup``)."""
        primary = Path(primary).expanduser()
        return cls(primary=primary, replica=primary.with_name(primary.name + suffix))

    def replica_if_present(self) -> Optional[Path]:
        if self.replica is not None and self.replica.is_file():
            return self.replica
        return None


def default_data_dir() -> Path:
    """The app's global storage directory for the current platform."""
    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / APP_DIR_NAME / "User" / "globalStorage"


def default_store_path() -> Path:
    return default_data_dir() / STORE_FILENAME


def resolve_store_paths(settings: AppSettings) -> StorePaths:
    """Primary and replica paths from settings, falling back to the platform default.

    Raises:
        StoreNotFoundError: If the primary store file does not exist.
    """
    primary = settings.store_path or default_store_path()
    paths = StorePaths.from_primary(primary, settings.replica_suffix)
    if not paths.primary.is_file():
        raise StoreNotFoundError("locate store", str(paths.primary), "state store not found")
    logger.debug("Resolved store %s (replica %s)", paths.primary, paths.replica)
    return paths
