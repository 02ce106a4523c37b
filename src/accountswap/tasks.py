"""
Async entry points for event-loop callers (tray apps, GUIs, MCP servers).

Each wraps one blocking operation in ``asyncio.to_thread`` so the loop
stays responsive. No operation is cancellable once started, and callers
must not run two of them against the same store at once.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from .catalog import AccountCatalog
from .cleanup import AccountCleaner
from .models import OperationResult, Snapshot
from .paths import StorePaths
from .restore import AccountRestorer


async def clear_async(cleaner: AccountCleaner, paths: StorePaths) -> OperationResult:
    return await asyncio.to_thread(cleaner.clear, paths)


async def restore_async(
    restorer: AccountRestorer, snapshot_path: Path, paths: StorePaths
) -> OperationResult:
    return await asyncio.to_thread(restorer.restore_file, snapshot_path, paths)


async def capture_async(
    catalog: AccountCatalog, store_path: Path, name: Optional[str] = None
) -> tuple[Snapshot, Path, bool]:
    """Back up the signed-in account without blocking the loop."""
    return await asyncio.to_thread(catalog.backup_current, store_path, name)
