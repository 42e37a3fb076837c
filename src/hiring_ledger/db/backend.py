"""Storage backend contract for the ledger.

A backend owns the durable ledger state and hands out units of work. The
ledger store runs every operation inside exactly one unit of work:

- ``transaction()`` - serializable read-write scope. Commits when the block
  exits normally and discards all changes when it raises.
- ``snapshot()`` - read-only scope that observes one consistent state.

The transaction primitives are deliberately dumb: they do not check
authorization or id ranges. Those rules live in
:mod:`hiring_ledger.ledger.store` so every backend enforces them identically.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from hiring_ledger.ledger.models import Application, Principal, Response, ResponseStatus

if TYPE_CHECKING:
    from hiring_ledger.config import LedgerConfig


class LedgerTransaction(Protocol):
    """Primitive reads and writes available inside a unit of work."""

    def get_owner(self) -> Principal: ...

    def set_owner(self, owner: Principal) -> None: ...

    def get_application_count(self) -> int: ...

    def insert_application(
        self,
        *,
        applicant: Principal,
        document_pointer: str,
        position: str,
        submitted_at: datetime,
    ) -> Application:
        """Increment the application counter and store the new application."""
        ...

    def get_application(self, app_id: int) -> Application | None: ...

    def is_responder(self, principal: Principal) -> bool: ...

    def set_responder(self, principal: Principal, allowed: bool) -> None: ...

    def count_responses(self, app_id: int) -> int: ...

    def append_response(
        self,
        app_id: int,
        *,
        responder: Principal,
        message: str,
        status: ResponseStatus,
        responded_at: datetime,
    ) -> int:
        """Append a response and return its zero-based index."""
        ...

    def get_response(self, app_id: int, index: int) -> Response | None: ...

    def list_responses(self, app_id: int) -> list[Response]: ...


class LedgerBackend(Protocol):
    """Persistence backend that provides ledger units of work."""

    name: str

    def transaction(self) -> AbstractContextManager[LedgerTransaction]: ...

    def snapshot(self) -> AbstractContextManager[LedgerTransaction]: ...


def create_backend(cfg: LedgerConfig | None = None) -> LedgerBackend:
    """
    Build the backend selected by configuration.

    The SQLite backend initializes its schema and seeds ``cfg.ledger.owner``
    only when the database holds no ledger state yet; an existing database
    keeps its persisted owner.

    Args:
        cfg: Configuration to use. Defaults to the module-level ``config``.

    Raises:
        ValueError: If the configured backend name is unknown.
    """
    if cfg is None:
        from hiring_ledger.config import config as cfg

    backend_name = cfg.database.backend
    if backend_name == "memory":
        from hiring_ledger.db.memory_backend import MemoryBackend

        return MemoryBackend(owner=cfg.ledger.owner)
    if backend_name == "sqlite":
        from hiring_ledger.db.sqlite_backend import SqliteBackend

        return SqliteBackend(cfg.database.absolute_path, owner=cfg.ledger.owner)
    raise ValueError(f"Unknown database backend: {backend_name!r}")
