"""SQLite connection primitives for the ledger DB layer.

This module owns connection creation, SQLite runtime pragmas and transaction
scoping so backend code can stay focused on queries.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def get_db_path() -> Path:
    """Resolve the absolute SQLite database path from runtime configuration."""
    from hiring_ledger.config import config

    return config.database.absolute_path


def configure_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Apply connection-level SQLite pragmas required by the ledger.

    Notes:
        - ``foreign_keys=ON`` is required because SQLite does not enforce
          foreign-key constraints by default.
        - ``busy_timeout`` makes a writer wait for a competing ``BEGIN
          IMMEDIATE`` to finish instead of failing straight away.
    """
    connection.execute("PRAGMA foreign_keys = ON")
    connection.execute("PRAGMA busy_timeout = 5000")
    return connection


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Create and configure a new SQLite connection.

    The connection runs in autocommit mode (``isolation_level=None``);
    transactions are opened explicitly by :func:`connection_scope`.
    """
    path = Path(db_path) if db_path is not None else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(str(path), isolation_level=None)
    return configure_connection(connection)


@contextmanager
def connection_scope(
    db_path: Path | str | None = None, *, write: bool = False
) -> Iterator[sqlite3.Connection]:
    """Yield a configured connection inside one explicit transaction.

    Args:
        db_path: Database file. Defaults to the configured path.
        write: When True, open with ``BEGIN IMMEDIATE`` so the write lock is
            taken before the first read. Otherwise open a deferred read
            transaction so every query sees the same snapshot.

    Behavior:
        - Commits at the end of a successful block.
        - Rolls back before re-raising any failure.
        - Always closes the connection in ``finally``.
    """
    connection = get_connection(db_path)
    try:
        connection.execute("BEGIN IMMEDIATE" if write else "BEGIN")
        yield connection
        connection.execute("COMMIT")
    except BaseException:
        if connection.in_transaction:
            try:
                connection.execute("ROLLBACK")
            except sqlite3.Error:
                # Preserve the original exception while best-effort rolling back.
                pass
        raise
    finally:
        connection.close()
