"""
Run one per-store pass against the primary store and, if present, the replica.

The primary is mandatory: failing to open it aborts the call. The replica
is best-effort: any hard error there is logged and recorded as a
recoverable failure on the result.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .errors import AccountStateError
from .keystore import KeyStore
from .models import OperationResult, RecoverableFailure, StoreOutcome
from .paths import StorePaths

logger = logging.getLogger("accountswap.dispatch")

PRIMARY = "primary"
REPLICA = "replica"

StorePass = Callable[[KeyStore, StoreOutcome], None]


def _run_pass(path: Path, label: str, store_pass: StorePass, timeout: float) -> StoreOutcome:
    outcome = StoreOutcome(label=label, path=str(path))
    with KeyStore.open(path, timeout=timeout) as store:
        store_pass(store, outcome)
    return outcome


def run_on_stores(
    operation: str,
    paths: StorePaths,
    store_pass: StorePass,
    timeout: float = 5.0,
) -> OperationResult:
    """Apply *store_pass* to the primary, then to the replica if it exists.

    Raises:
        StoreNotFoundError: If the primary store is missing.
        StoreIOError: If the primary store cannot be opened.
    """
    logger.info("%s: processing primary store %s", operation, paths.primary)
    primary = _run_pass(paths.primary, PRIMARY, store_pass, timeout)
    result = OperationResult(operation=operation, primary=primary)

    replica_path = paths.replica_if_present()
    if replica_path is None:
        logger.info("%s: no replica store, skipping", operation)
        return result

    result.replica_present = True
    logger.info("%s: processing replica store %s", operation, replica_path)
    try:
        result.replica = _run_pass(replica_path, REPLICA, store_pass, timeout)
    except AccountStateError as exc:
        logger.warning("%s: replica store failed: %s", operation, exc)
        result.failures.append(
            RecoverableFailure(
                operation=operation,
                store=REPLICA,
                key=exc.key,
                kind=exc.kind,
                message=str(exc),
            )
        )
    return result
