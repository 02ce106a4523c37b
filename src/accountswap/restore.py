"""
Restore a saved account into the host app's state store.

The snapshot is read and validated before any store is opened, so a bad
file never leaves a half-written store behind. Per store:

1. Write every string-typed managed field from the snapshot.
2. Merge the written fields into the store's marker, taking each flag
   from the snapshot's captured marker and falling back to the
   configured default.
3. Reset the analytics upload timestamp so the app does not fire a
   sync straight after the swap.

Field writes are not wrapped in one transaction. If a write fails
partway, the marker merge still runs for the fields that did land.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .config import StateConfig
from .dispatch import run_on_stores
from .errors import AccountStateError, SnapshotNotFoundError
from .keystore import KeyStore
from .marker import load_marker, merge_fields, save_marker
from .models import OperationResult, RecoverableFailure, Snapshot, StoreOutcome
from .paths import StorePaths

logger = logging.getLogger("accountswap.restore")

OPERATION = "restore"
ANALYTICS_RESET_VALUE = "0"


def load_snapshot(path: Path, config: StateConfig) -> Snapshot:
    """Read and validate a snapshot file.

    Raises:
        SnapshotNotFoundError: If the file does not exist.
        AccountStateError: If the file cannot be read.
        SnapshotParseError: If the file is not a JSON object.
    """
    path = Path(path)
    if not path.is_file():
        raise SnapshotNotFoundError("read snapshot", str(path), "file does not exist")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AccountStateError("read snapshot", str(path), exc) from exc
    snapshot = Snapshot.from_json(text, config, source=str(path))
    for key in snapshot.skipped:
        logger.warning("Snapshot field %s is not a string, it will be skipped", key)
    return snapshot


def restore_store(
    store: KeyStore,
    outcome: StoreOutcome,
    snapshot: Snapshot,
    config: StateConfig,
) -> None:
    """Write snapshot fields into one open store and merge its marker.

    Per-field, marker, and timestamp errors are recorded on *outcome*.
    """
    restored: list[str] = []
    for key in config.field_keys:
        value = snapshot.values.get(key)
        if value is None:
            continue
        try:
            store.upsert(key, value)
        except AccountStateError as exc:
            logger.warning("Could not write %s to %s: %s", key, outcome.label, exc)
            outcome.failures.append(_failure(outcome, key, exc))
            continue
        logger.info("Wrote %s to %s", key, outcome.label)
        outcome.count += 1
        outcome.fields.append(key)
        if key != config.reserved.new_storage:
            restored.append(key)

    if not restored:
        logger.info("Nothing restored into %s, leaving marker alone", outcome.label)
        return

    if snapshot.marker is None:
        logger.info("Snapshot has no marker, using default flags")

    try:
        current = load_marker(store, config)
        merge_fields(current, snapshot.marker, restored, config)
        save_marker(store, current, config)
        outcome.marker_updated = True
        logger.info("Merged %d field(s) into %s marker", len(restored), outcome.label)
    except AccountStateError as exc:
        logger.warning("Marker merge failed for %s: %s", outcome.label, exc)
        outcome.failures.append(_failure(outcome, config.reserved.marker, exc))

    analytics_key = config.reserved.analytics_timestamp
    try:
        store.upsert(analytics_key, ANALYTICS_RESET_VALUE)
    except AccountStateError as exc:
        logger.warning("Could not reset %s in %s: %s", analytics_key, outcome.label, exc)
        outcome.failures.append(_failure(outcome, analytics_key, exc))


def _failure(outcome: StoreOutcome, key: str, exc: AccountStateError) -> RecoverableFailure:
    return RecoverableFailure(
        operation=OPERATION,
        store=outcome.label,
        key=key,
        kind=exc.kind,
        message=str(exc),
    )


class AccountRestorer:
    """Restores saved accounts into the primary store and its replica.

    Args:
        config: Managed-field configuration.
        timeout: Seconds to wait on a locked store.
    """

    def __init__(self, config: Optional[StateConfig] = None, timeout: float = 5.0) -> None:
        self.config = config or StateConfig()
        self.timeout = timeout

    def restore_file(self, snapshot_path: Path, paths: StorePaths) -> OperationResult:
        """Load *snapshot_path* and restore it.

        Raises:
            SnapshotNotFoundError: If the snapshot file is missing.
            SnapshotParseError: If the snapshot file is malformed.
            StoreNotFoundError: If the primary store is missing.
            StoreIOError: If the primary store cannot be opened.
        """
        logger.info("Restoring account from %s", snapshot_path)
        snapshot = load_snapshot(snapshot_path, self.config)
        return self.restore(snapshot, paths)

    def restore(self, snapshot: Snapshot, paths: StorePaths) -> OperationResult:
        """Restore an already-validated snapshot."""
        result = run_on_stores(
            OPERATION,
            paths,
            lambda store, outcome: restore_store(store, outcome, snapshot, self.config),
            timeout=self.timeout,
        )
        logger.info("%s", result.summary())
        return result
