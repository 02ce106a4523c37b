"""
Log the host app out by deleting every managed auth/session row.

Per store: delete each managed field, drop those fields from the sync
marker, and write the marker back only if it changed.
"""

from __future__ import annotations

import logging
from typing import Optional

from .config import StateConfig
from .dispatch import run_on_stores
from .errors import AccountStateError
from .keystore import KeyStore
from .marker import load_marker, remove_fields, save_marker
from .models import OperationResult, RecoverableFailure, StoreOutcome
from .paths import StorePaths

logger = logging.getLogger("accountswap.cleanup")

OPERATION = "clear"


def clear_store(store: KeyStore, outcome: StoreOutcome, config: StateConfig) -> None:
    """Delete managed rows from one open store and reconcile its marker.

    Per-field and marker errors are recorded on *outcome*, never raised.
    """
    for key in config.field_keys:
        try:
            removed = store.delete(key)
        except AccountStateError as exc:
            logger.warning("Could not delete %s from %s: %s", key, outcome.label, exc)
            outcome.failures.append(_failure(outcome, key, exc))
            continue
        if removed:
            logger.info("Deleted %s from %s", key, outcome.label)
            outcome.count += 1
            outcome.fields.append(key)

    marker_key = config.reserved.marker
    try:
        marker = load_marker(store, config)
        if remove_fields(marker, config.field_keys):
            save_marker(store, marker, config)
            outcome.marker_updated = True
            logger.info("Removed managed fields from %s marker", outcome.label)
        else:
            logger.info("Marker in %s needs no change", outcome.label)
    except AccountStateError as exc:
        logger.warning("Marker update failed for %s: %s", outcome.label, exc)
        outcome.failures.append(_failure(outcome, marker_key, exc))


def _failure(outcome: StoreOutcome, key: str, exc: AccountStateError) -> RecoverableFailure:
    return RecoverableFailure(
        operation=OPERATION,
        store=outcome.label,
        key=key,
        kind=exc.kind,
        message=str(exc),
    )


class AccountCleaner:
    """Clears the signed-in account from the primary store and its replica.

    Args:
        config: Managed-field configuration.
        timeout: Seconds to wait on a locked store.
    """

    def __init__(self, config: Optional[StateConfig] = None, timeout: float = 5.0) -> None:
        self.config = config or StateConfig()
        self.timeout = timeout

    def clear(self, paths: StorePaths) -> OperationResult:
        """Remove managed fields from every applicable store.

        Raises:
            StoreNotFoundError: If the primary store is missing.
            StoreIOError: If the primary store cannot be opened.
        """
        result = run_on_stores(
            OPERATION,
            paths,
            lambda store, outcome: clear_store(store, outcome, self.config),
            timeout=self.timeout,
        )
        logger.info("%s", result.summary())
        return result
