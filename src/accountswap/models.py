"""
Pydantic models for marker documents, account snapshots, and results.

Marker and snapshot documents come from files the host app (or an older
version of this tool) wrote, so both are validated once at the boundary.
Everything past ``Marker.parse`` and ``Snapshot.from_document`` can
assume well-formed data.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, RootModel, ValidationError

from .config import StateConfig
from .errors import ErrorKind, SnapshotParseError

logger = logging.getLogger("accountswap.models")

SNAPSHOT_NAME_KEY = "name"
SNAPSHOT_TIMESTAMP_KEY = "timestamp"


class Marker(RootModel[dict[str, Any]]):
    """The host app's sync-marker document: field name -> 0/1 flag.

    Entries this tool does not manage are carried through untouched,
    whatever their value.
    """

    root: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "Marker":
        """Parse a stored marker value.

        A missing value, invalid JSON, or a non-object document all yield
        an empty marker.
        """
        if raw is None:
            return cls()
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as exc:
            logger.warning("Unparsable marker document, treating as empty: %s", exc)
            return cls()
        if not isinstance(data, dict):
            logger.warning("Marker document is not an object, treating as empty")
            return cls()
        return cls(data)

    def flag(self, key: str) -> Optional[int]:
        """Return the 0/1 flag for *key*, or None if absent or not a valid flag."""
        value = self.root.get(key)
        if isinstance(value, bool) or not isinstance(value, int) or value not in (0, 1):
            return None
        return value

    def __contains__(self, key: object) -> bool:
        return key in self.root

    def __len__(self) -> int:
        return len(self.root)

    def to_json(self) -> str:
        return json.dumps(self.root, separators=(",", ":"), ensure_ascii=False)


class Snapshot(BaseModel):
    """One saved account: raw managed-field values plus the marker at backup time.

    ``values`` only holds string-typed field values; managed keys that were
    present with any other type are listed in ``skipped``.
    """

    name: Optional[str] = None
    timestamp: Optional[datetime] = None
    values: dict[str, str] = Field(default_factory=dict)
    marker: Optional[Marker] = None
    skipped: list[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Any, config: StateConfig, source: str = "snapshot") -> "Snapshot":
        """Validate a decoded snapshot JSON document.

        Args:
            doc: The decoded JSON value.
            config: Managed-field configuration.
            source: File path or label used in error messages.

        Raises:
            SnapshotParseError: If *doc* is not a JSON object.
        """
        if not isinstance(doc, dict):
            raise SnapshotParseError("parse snapshot", source, "top-level value is not an object")

        values: dict[str, str] = {}
        skipped: list[str] = []
        for key in config.field_keys:
            if key not in doc:
                continue
            value = doc[key]
            if isinstance(value, str):
                values[key] = value
            else:
                skipped.append(key)

        marker: Optional[Marker] = None
        raw_marker = doc.get(config.reserved.marker)
        if isinstance(raw_marker, dict):
            marker = Marker(raw_marker)
        elif raw_marker is not None:
            logger.warning("Snapshot %s has a non-object marker, ignoring it", source)

        name = doc.get(SNAPSHOT_NAME_KEY)
        timestamp = None
        if doc.get(SNAPSHOT_TIMESTAMP_KEY) is not None:
            try:
                timestamp = _Stamp.model_validate({"at": doc[SNAPSHOT_TIMESTAMP_KEY]}).at
            except ValidationError:
                logger.warning("Snapshot %s has an unreadable timestamp", source)

        return cls(
            name=name if isinstance(name, str) else None,
            timestamp=timestamp,
            values=values,
            marker=marker,
            skipped=skipped,
        )

    @classmethod
    def from_json(cls, text: str, config: StateConfig, source: str = "snapshot") -> "Snapshot":
        """Decode and validate snapshot JSON text.

        Raises:
            SnapshotParseError: If *text* is not valid JSON or not an object.
        """
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotParseError("parse snapshot", source, exc) from exc
        return cls.from_document(doc, config, source=source)

    def to_document(self, config: StateConfig) -> dict[str, Any]:
        """Render the on-disk JSON object."""
        doc: dict[str, Any] = {}
        if self.name is not None:
            doc[SNAPSHOT_NAME_KEY] = self.name
        if self.timestamp is not None:
            doc[SNAPSHOT_TIMESTAMP_KEY] = self.timestamp.isoformat()
        doc.update(self.values)
        if self.marker is not None:
            doc[config.reserved.marker] = dict(self.marker.root)
        return doc


class _Stamp(BaseModel):
    at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecoverableFailure(BaseModel):
    """A per-field or per-store problem that was logged and skipped."""

    operation: str
    store: str
    key: Optional[str] = None
    kind: ErrorKind = ErrorKind.IO
    message: str = ""


class StoreOutcome(BaseModel):
    """What one clear/restore pass did to a single store file.

    Attributes:
        label: ``"primary"`` or ``"replica"``.
        path: Store file path.
        count: Rows deleted (clear) or written (restore).
        fields: The keys counted in ``count``.
        marker_updated: Whether the marker row was rewritten.
        failures: Recoverable problems hit while processing this store.
    """

    label: str
    path: str
    count: int = 0
    fields: list[str] = Field(default_factory=list)
    marker_updated: bool = False
    failures: list[RecoverableFailure] = Field(default_factory=list)


_HEADLINES = {
    "clear": ("Logged out", "cleared"),
    "restore": ("Restored", "restored"),
}


class OperationResult(BaseModel):
    """Structured outcome of a clear or restore call.

    ``failures`` holds store-level problems (e.g. an unopenable replica);
    per-field problems live on each ``StoreOutcome``.
    """

    operation: str
    primary: StoreOutcome
    replica: Optional[StoreOutcome] = None
    replica_present: bool = False
    failures: list[RecoverableFailure] = Field(default_factory=list)

    def all_failures(self) -> list[RecoverableFailure]:
        found = list(self.failures)
        for outcome in (self.primary, self.replica):
            if outcome is not None:
                found.extend(outcome.failures)
        return found

    @property
    def partial(self) -> bool:
        """True when anything was skipped along the way."""
        return bool(self.all_failures())

    @property
    def status(self) -> Optional[ErrorKind]:
        """``ErrorKind.PARTIAL`` when anything was skipped, else None."""
        return ErrorKind.PARTIAL if self.partial else None

    def summary(self) -> str:
        """Single human-readable line aggregating counts and failures."""
        headline, verb = _HEADLINES.get(self.operation, (self.operation, "processed"))
        parts = [f"primary {verb} {self.primary.count} item(s)"]
        if self.replica is not None:
            parts.append(f"replica {verb} {self.replica.count} item(s)")
        elif self.replica_present:
            parts.append("replica skipped after error")
        text = f"{headline}: " + "; ".join(parts)
        failures = self.all_failures()
        if failures:
            text += f" ({len(failures)} recoverable failure(s))"
        return text
