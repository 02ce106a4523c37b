"""Error taxonomy for account-state operations.

Every error carries the operation that raised it, the store key or file
involved (if any) and the underlying cause, so callers can branch on
``kind`` instead of parsing message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Category of an account-state failure."""

    NOT_FOUND = "not_found"
    IO = "io"
    PARSE = "parse"
    PARTIAL = "partial"


class AccountStateError(Exception):
    """Base class for hard failures of a clear, restore, or backup call.

    Args:
        operation: Short name of the failing operation (e.g. ``"open"``).
        key: Store key or file path involved, if any.
        cause: The underlying exception or a plain description.
    """

    kind: ErrorKind = ErrorKind.IO

    def __init__(
        self,
        operation: str,
        key: Optional[str] = None,
        cause: object = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(self._render())

    def _render(self) -> str:
        text = f"{self.operation} failed"
        if self.key:
            text += f" for {self.key}"
        if self.cause is not None:
            text += f": {self.cause}"
        return text


class StoreNotFoundError(AccountStateError):
    """The state store file (or a required row inside it) does not exist."""

    kind = ErrorKind.NOT_FOUND


class SnapshotNotFoundError(AccountStateError):
    """No saved account snapshot exists under the requested name or path."""

    kind = ErrorKind.NOT_FOUND


class StoreIOError(AccountStateError):
    """Reading or writing the state store failed.

    ``transient`` is set when the failure is lock contention with the
    running desktop app; retrying after the app exits usually succeeds.
    """

    kind = ErrorKind.IO

    def __init__(
        self,
        operation: str,
        key: Optional[str] = None,
        cause: object = None,
        transient: bool = False,
    ) -> None:
        self.transient = transient
        super().__init__(operation, key, cause)


class SnapshotParseError(AccountStateError):
    """A snapshot file is not valid JSON or not a JSON object."""

    kind = ErrorKind.PARSE
