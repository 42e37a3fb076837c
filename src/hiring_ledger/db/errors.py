"""Typed storage exceptions for the DB package.

Backends raise these when the persistence layer itself fails (for example a
SQLite lock timeout or a full disk). Rule violations such as an unknown
application id are not storage failures; the ledger store raises its own
domain errors for those.

The ledger store converts every :class:`DatabaseError` into
``StorageFailure`` so callers see one error kind for durability problems.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class DatabaseOperationContext:
    """Structured operation metadata carried by backend exceptions.

    Attributes:
        operation: Stable operation identifier (for example
            ``"ledger.append_response"``).
        details: Optional human-readable context for logs and debugging.
    """

    operation: str
    details: str | None = None


class DatabaseError(RuntimeError):
    """Base exception for DB-layer failures."""


class DatabaseOperationError(DatabaseError):
    """Base exception for backend operation failures.

    Args:
        context: Structured operation metadata.
        cause: Optional underlying exception.
    """

    def __init__(
        self,
        *,
        context: DatabaseOperationContext,
        cause: Exception | None = None,
    ) -> None:
        message = context.operation
        if context.details:
            message = f"{message}: {context.details}"
        super().__init__(message)
        self.context = context
        self.cause = cause


class DatabaseReadError(DatabaseOperationError):
    """Backend read/query failure."""


class DatabaseWriteError(DatabaseOperationError):
    """Backend mutation/transaction failure."""
