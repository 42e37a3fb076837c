"""Schema creation and append-only trigger wiring for the SQLite backend.

The schema layer is isolated from query code so schema changes are reviewable
without wading through backend logic.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from hiring_ledger.db.connection import connection_scope
from hiring_ledger.ledger.models import Principal, ResponseStatus

_STATUS_VALUES = ", ".join(f"'{status.value}'" for status in ResponseStatus)

TABLE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS ledger_state (
        id INTEGER PRIMARY KEY CHECK (id = 1),
        owner TEXT NOT NULL CHECK (length(trim(owner)) > 0),
        application_count INTEGER NOT NULL DEFAULT 0 CHECK (application_count >= 0)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id INTEGER PRIMARY KEY CHECK (id >= 1),
        applicant TEXT NOT NULL,
        document_pointer TEXT NOT NULL CHECK (length(document_pointer) > 0),
        position TEXT NOT NULL CHECK (length(position) > 0),
        submitted_at TEXT NOT NULL
    )
    """,
    f"""
    CREATE TABLE IF NOT EXISTS responses (
        application_id INTEGER NOT NULL REFERENCES applications(id),
        response_index INTEGER NOT NULL CHECK (response_index >= 0),
        responder TEXT NOT NULL,
        message TEXT NOT NULL,
        status TEXT NOT NULL CHECK (status IN ({_STATUS_VALUES})),
        responded_at TEXT NOT NULL,
        PRIMARY KEY (application_id, response_index)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS responders (
        principal TEXT PRIMARY KEY,
        allowed INTEGER NOT NULL CHECK (allowed IN (0, 1))
    )
    """,
)


def create_append_only_triggers(cursor: sqlite3.Cursor) -> None:
    """Create triggers that reject edits to ledger history.

    Invariant model:
    - ``applications`` and ``responses`` rows are insert-only.
    - The single ``ledger_state`` row cannot be deleted and its
      ``application_count`` never decreases.

    The triggers protect direct SQL writes as well as backend code paths.
    """
    for table in ("applications", "responses"):
        for action in ("UPDATE", "DELETE"):
            name = f"{table}_no_{action.lower()}"
            cursor.execute(f"DROP TRIGGER IF EXISTS {name}")
            cursor.execute(f"""
                CREATE TRIGGER {name}
                BEFORE {action} ON {table}
                BEGIN
                    SELECT RAISE(ABORT, 'append-only violation: {table} rows are immutable');
                END
            """)

    cursor.execute("DROP TRIGGER IF EXISTS ledger_state_no_delete")
    cursor.execute("""
        CREATE TRIGGER ledger_state_no_delete
        BEFORE DELETE ON ledger_state
        BEGIN
            SELECT RAISE(ABORT, 'ledger state row cannot be deleted');
        END
    """)

    cursor.execute("DROP TRIGGER IF EXISTS ledger_state_count_monotonic")
    cursor.execute("""
        CREATE TRIGGER ledger_state_count_monotonic
        BEFORE UPDATE OF application_count ON ledger_state
        WHEN NEW.application_count < OLD.application_count
        BEGIN
            SELECT RAISE(ABORT, 'application_count cannot decrease');
        END
    """)


def init_database(db_path: Path | str | None = None, *, owner: Principal) -> bool:
    """Create the schema and seed the owner when the ledger is new.

    Safe to call on every start: tables and triggers are created idempotently
    and an existing ``ledger_state`` row (and therefore its owner) is kept.

    Args:
        db_path: Database file. Defaults to the configured path.
        owner: Owner to seed into a fresh ledger.

    Returns:
        ``True`` when a fresh ledger state row was created.
    """
    with connection_scope(db_path, write=True) as conn:
        cursor = conn.cursor()
        for statement in TABLE_STATEMENTS:
            cursor.execute(statement)
        create_append_only_triggers(cursor)
        cursor.execute(
            "INSERT OR IGNORE INTO ledger_state (id, owner, application_count) VALUES (1, ?, 0)",
            (owner,),
        )
        return cursor.rowcount == 1
