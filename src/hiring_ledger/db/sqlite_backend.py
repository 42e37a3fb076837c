"""SQLite ledger backend.

Every unit of work opens its own connection. Write transactions start with
``BEGIN IMMEDIATE``, which takes SQLite's reserved lock before the first read,
so two writers (threads or processes) can never both read the same "next id"
or "next index". Read snapshots use a deferred transaction so all queries in
one snapshot see the same committed state.

Infrastructure failures (``sqlite3.Error``, unusable paths) are raised as
typed :mod:`hiring_ledger.db.errors` exceptions carrying the operation name.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, NoReturn

from hiring_ledger.db.connection import connection_scope
from hiring_ledger.db.errors import (
    DatabaseError,
    DatabaseOperationContext,
    DatabaseReadError,
    DatabaseWriteError,
)
from hiring_ledger.db.schema import init_database
from hiring_ledger.ledger.models import Application, Principal, Response, ResponseStatus

logger = logging.getLogger(__name__)


def _raise_read_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed backend read error while preserving chained cause."""
    if isinstance(exc, DatabaseError):
        raise exc
    raise DatabaseReadError(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def _raise_write_error(operation: str, exc: Exception, *, details: str | None = None) -> NoReturn:
    """Raise a typed backend write error while preserving chained cause."""
    if isinstance(exc, DatabaseError):
        raise exc
    raise DatabaseWriteError(
        context=DatabaseOperationContext(operation=operation, details=details),
        cause=exc,
    ) from exc


def _row_to_application(row: tuple[Any, ...]) -> Application:
    app_id, applicant, document_pointer, position, submitted_at = row
    return Application(
        id=int(app_id),
        applicant=applicant,
        document_pointer=document_pointer,
        position=position,
        submitted_at=datetime.fromisoformat(submitted_at),
    )


def _row_to_response(row: tuple[Any, ...]) -> Response:
    responder, message, status, responded_at = row
    return Response(
        responder=responder,
        message=message,
        status=ResponseStatus(status),
        responded_at=datetime.fromisoformat(responded_at),
    )


class _SqliteTransaction:
    """Transaction primitives bound to one open SQLite transaction."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._cursor = connection.cursor()

    def _read(self, operation: str, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self._cursor.execute(sql, params)
        except sqlite3.Error as exc:
            _raise_read_error(operation, exc, details=f"params={params!r}")

    def _write(self, operation: str, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self._cursor.execute(sql, params)
        except sqlite3.Error as exc:
            _raise_write_error(operation, exc, details=f"params={params!r}")

    def _state_row(self, operation: str) -> tuple[str, int]:
        row = self._read(
            operation, "SELECT owner, application_count FROM ledger_state WHERE id = 1"
        ).fetchone()
        if row is None:
            raise DatabaseReadError(
                context=DatabaseOperationContext(
                    operation=operation, details="ledger_state row is missing"
                )
            )
        return row[0], int(row[1])

    def get_owner(self) -> Principal:
        return self._state_row("ledger.get_owner")[0]

    def set_owner(self, owner: Principal) -> None:
        self._write("ledger.set_owner", "UPDATE ledger_state SET owner = ? WHERE id = 1", (owner,))

    def get_application_count(self) -> int:
        return self._state_row("ledger.get_application_count")[1]

    def insert_application(
        self,
        *,
        applicant: Principal,
        document_pointer: str,
        position: str,
        submitted_at: datetime,
    ) -> Application:
        operation = "ledger.insert_application"
        self._write(
            operation,
            "UPDATE ledger_state SET application_count = application_count + 1 WHERE id = 1",
        )
        app_id = self._state_row(operation)[1]
        self._write(
            operation,
            """
            INSERT INTO applications (id, applicant, document_pointer, position, submitted_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (app_id, applicant, document_pointer, position, submitted_at.isoformat()),
        )
        return Application(
            id=app_id,
            applicant=applicant,
            document_pointer=document_pointer,
            position=position,
            submitted_at=submitted_at,
        )

    def get_application(self, app_id: int) -> Application | None:
        row = self._read(
            "ledger.get_application",
            """
            SELECT id, applicant, document_pointer, position, submitted_at
            FROM applications
            WHERE id = ?
            """,
            (app_id,),
        ).fetchone()
        return _row_to_application(row) if row else None

    def is_responder(self, principal: Principal) -> bool:
        row = self._read(
            "ledger.is_responder",
            "SELECT allowed FROM responders WHERE principal = ?",
            (principal,),
        ).fetchone()
        return bool(row[0]) if row else False

    def set_responder(self, principal: Principal, allowed: bool) -> None:
        self._write(
            "ledger.set_responder",
            """
            INSERT INTO responders (principal, allowed) VALUES (?, ?)
            ON CONFLICT(principal) DO UPDATE SET allowed = excluded.allowed
            """,
            (principal, int(allowed)),
        )

    def count_responses(self, app_id: int) -> int:
        row = self._read(
            "ledger.count_responses",
            "SELECT COUNT(*) FROM responses WHERE application_id = ?",
            (app_id,),
        ).fetchone()
        return int(row[0])

    def append_response(
        self,
        app_id: int,
        *,
        responder: Principal,
        message: str,
        status: ResponseStatus,
        responded_at: datetime,
    ) -> int:
        index = self.count_responses(app_id)
        self._write(
            "ledger.append_response",
            """
            INSERT INTO responses
                (application_id, response_index, responder, message, status, responded_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (app_id, index, responder, message, status.value, responded_at.isoformat()),
        )
        return index

    def get_response(self, app_id: int, index: int) -> Response | None:
        row = self._read(
            "ledger.get_response",
            """
            SELECT responder, message, status, responded_at
            FROM responses
            WHERE application_id = ? AND response_index = ?
            """,
            (app_id, index),
        ).fetchone()
        return _row_to_response(row) if row else None

    def list_responses(self, app_id: int) -> list[Response]:
        rows = self._read(
            "ledger.list_responses",
            """
            SELECT responder, message, status, responded_at
            FROM responses
            WHERE application_id = ?
            ORDER BY response_index ASC
            """,
            (app_id,),
        ).fetchall()
        return [_row_to_response(row) for row in rows]


class SqliteBackend:
    """
    Durable ledger backend stored in a single SQLite file.

    Creating the backend initializes the schema. A fresh database is seeded
    with ``owner``; an existing one keeps the owner it already has.

    Args:
        db_path: Database file location. Parent directories are created.
        owner: Owner to seed into a fresh ledger.
    """

    name = "sqlite"

    def __init__(self, db_path: Path | str, *, owner: Principal) -> None:
        self.db_path = Path(db_path)
        try:
            created = init_database(self.db_path, owner=owner)
        except (sqlite3.Error, OSError) as exc:
            _raise_write_error("ledger.init_database", exc, details=f"db_path={self.db_path}")
        if created:
            logger.info("Initialized new ledger at %s (owner=%r)", self.db_path, owner)
        else:
            logger.info("Opened existing ledger at %s", self.db_path)

    @contextmanager
    def _scope(self, operation: str, *, write: bool) -> Iterator[_SqliteTransaction]:
        try:
            with connection_scope(self.db_path, write=write) as conn:
                yield _SqliteTransaction(conn)
        except DatabaseError:
            raise
        except (sqlite3.Error, OSError) as exc:
            if write:
                _raise_write_error(operation, exc, details=f"db_path={self.db_path}")
            _raise_read_error(operation, exc, details=f"db_path={self.db_path}")

    def transaction(self):
        """Open a serializable read-write unit of work."""
        return self._scope("ledger.transaction", write=True)

    def snapshot(self):
        """Open a consistent read-only unit of work."""
        return self._scope("ledger.snapshot", write=False)
