"""
Sync-marker bookkeeping.

The host app keeps a JSON object under a reserved key that maps each
tracked field to a 0/1 flag. Removing a field must drop its entry
entirely: a present-but-zero entry means something different to the app
than an absent one.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from .config import StateConfig
from .keystore import KeyStore
from .models import Marker

logger = logging.getLogger("accountswap.marker")


def remove_fields(marker: Marker, fields: Iterable[str]) -> bool:
    """Drop every listed field from *marker* in place.

    Fields absent from the marker are ignored.

    Returns:
        bool: True if at least one entry was removed.
    """
    changed = False
    for key in fields:
        if key in marker.root:
            del marker.root[key]
            changed = True
    return changed


def resolve_flag(snapshot_marker: Optional[Marker], key: str, config: StateConfig) -> int:
    """Flag to register for a restored *key*.

    The snapshot's own flag wins. Only when it has none does the
    configured per-field default apply.
    """
    if snapshot_marker is not None:
        flag = snapshot_marker.flag(key)
        if flag is not None:
            return flag
    default = config.default_flag(key)
    logger.info("No marker flag for %s in snapshot, using default %d", key, default)
    return default


def merge_fields(
    current: Marker,
    snapshot_marker: Optional[Marker],
    restored: Iterable[str],
    config: StateConfig,
) -> Marker:
    """Register restored fields into *current* in place.

    Each restored field's flag overwrites any prior value; unrelated
    entries are left alone. The new-storage key is never registered.

    Args:
        current: Marker read from the store being restored.
        snapshot_marker: Marker captured in the snapshot, if any.
        restored: Keys that were actually written to the store.
        config: Managed-field configuration.

    Returns:
        Marker: *current*, for chaining.
    """
    for key in restored:
        if key == config.reserved.new_storage:
            continue
        current.root[key] = resolve_flag(snapshot_marker, key, config)
    return current


def load_marker(store: KeyStore, config: StateConfig) -> Marker:
    """Read the store's marker; absent or unparsable yields an empty marker."""
    return Marker.parse(store.read(config.reserved.marker))


def save_marker(store: KeyStore, marker: Marker, config: StateConfig) -> None:
    store.upsert(config.reserved.marker, marker.to_json())
