"""Domain exceptions raised by the ledger store.

Every failure of a ledger operation is one of these kinds. All of them are
synchronous caller-side faults except :class:`StorageFailure`, which wraps a
persistence-layer error. None of them are retried by the ledger.

A failing operation never leaves partial state behind: no counter increment,
no partial append, no allow-list change.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger operation failures.

    Attributes:
        kind: Stable, machine-friendly error kind used by the API layer.
    """

    kind = "LedgerError"


class InvalidInput(LedgerError):
    """A required field is empty, null or malformed."""

    kind = "InvalidInput"


class Unauthorized(LedgerError):
    """The caller does not hold the role the operation requires."""

    kind = "Unauthorized"


class NotFound(LedgerError):
    """The referenced application id does not exist."""

    kind = "NotFound"


class IndexOutOfRange(LedgerError):
    """The response index is beyond the stored sequence length."""

    kind = "IndexOutOfRange"


class StorageFailure(LedgerError):
    """The storage backend failed to read or persist state.

    Args:
        operation: Ledger operation that was running.
        cause: The underlying backend exception.
    """

    kind = "StorageFailure"

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        message = f"storage failure during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.cause = cause
