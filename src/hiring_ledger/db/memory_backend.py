"""In-process ledger backend.

State lives in plain dicts guarded by one re-entrant lock. A transaction holds
the lock for its whole duration, so units of work are totally ordered and
readers never observe a half-applied write.

There is no rollback journal: the ledger store finishes every check before its
single write primitive, and each write primitive updates state in one step.
State does not survive the process.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from hiring_ledger.ledger.models import Application, Principal, Response, ResponseStatus


class _MemoryState:
    """Ledger state for one backend instance."""

    def __init__(self, owner: Principal) -> None:
        self.owner = owner
        self.application_count = 0
        self.applications: dict[int, Application] = {}
        # Lists for an id exist only after the first append.
        self.responses: dict[int, list[Response]] = {}
        self.responder_allow_list: dict[Principal, bool] = {}


class _MemoryTransaction:
    """Transaction primitives over :class:`_MemoryState`."""

    def __init__(self, state: _MemoryState) -> None:
        self._state = state

    def get_owner(self) -> Principal:
        return self._state.owner

    def set_owner(self, owner: Principal) -> None:
        self._state.owner = owner

    def get_application_count(self) -> int:
        return self._state.application_count

    def insert_application(
        self,
        *,
        applicant: Principal,
        document_pointer: str,
        position: str,
        submitted_at: datetime,
    ) -> Application:
        app_id = self._state.application_count + 1
        application = Application(
            id=app_id,
            applicant=applicant,
            document_pointer=document_pointer,
            position=position,
            submitted_at=submitted_at,
        )
        self._state.applications[app_id] = application
        self._state.application_count = app_id
        return application

    def get_application(self, app_id: int) -> Application | None:
        return self._state.applications.get(app_id)

    def is_responder(self, principal: Principal) -> bool:
        return self._state.responder_allow_list.get(principal, False)

    def set_responder(self, principal: Principal, allowed: bool) -> None:
        self._state.responder_allow_list[principal] = allowed

    def count_responses(self, app_id: int) -> int:
        return len(self._state.responses.get(app_id, ()))

    def append_response(
        self,
        app_id: int,
        *,
        responder: Principal,
        message: str,
        status: ResponseStatus,
        responded_at: datetime,
    ) -> int:
        sequence = self._state.responses.setdefault(app_id, [])
        sequence.append(
            Response(
                responder=responder,
                message=message,
                status=status,
                responded_at=responded_at,
            )
        )
        return len(sequence) - 1

    def get_response(self, app_id: int, index: int) -> Response | None:
        sequence = self._state.responses.get(app_id, [])
        if 0 <= index < len(sequence):
            return sequence[index]
        return None

    def list_responses(self, app_id: int) -> list[Response]:
        return list(self._state.responses.get(app_id, ()))


class MemoryBackend:
    """
    Ledger backend that keeps all state in memory.

    Args:
        owner: Initial owner principal (the deployer).
    """

    name = "memory"

    def __init__(self, owner: Principal) -> None:
        self._state = _MemoryState(owner)
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[_MemoryTransaction]:
        with self._lock:
            yield _MemoryTransaction(self._state)

    @contextmanager
    def snapshot(self) -> Iterator[_MemoryTransaction]:
        with self._lock:
            yield _MemoryTransaction(self._state)
