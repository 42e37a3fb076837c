"""Ledger store: the rules of the append-only application ledger.

Overview
--------
:class:`LedgerStore` is the single place where ledger invariants and access
checks are enforced. It delegates persistence to a backend
(:mod:`hiring_ledger.db`) and publishes notifications on an
:class:`~hiring_ledger.core.bus.EventBus`.

Every operation runs inside exactly one backend unit of work:

1. Validate plain inputs (empty strings, null principals, unknown status).
2. Open a transaction (mutations) or snapshot (reads).
3. Check authorization and id/index ranges against the state seen inside
   that transaction.
4. Perform the single write primitive.
5. Commit, then emit the notification.

Because checks and the write share one serializable transaction, two
concurrent submitters can never be handed the same id and two concurrent
responders can never be handed the same ``(app_id, index)`` pair. A rejected
call leaves no trace in state.

Lifecycle
---------
Applications and responses go from non-existent to existing and never change
again. There is no status workflow: any :class:`ResponseStatus` may follow any
other on the same application.

Error mapping
-------------
Rule violations raise the domain errors in :mod:`hiring_ledger.ledger.errors`.
Backend :class:`~hiring_ledger.db.errors.DatabaseError` failures are re-raised
as :class:`StorageFailure` with the original exception chained.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from hiring_ledger.core.bus import EventBus
from hiring_ledger.core.events import Events
from hiring_ledger.db.errors import DatabaseError
from hiring_ledger.ledger import permissions
from hiring_ledger.ledger.errors import (
    IndexOutOfRange,
    InvalidInput,
    LedgerError,
    NotFound,
    StorageFailure,
)
from hiring_ledger.ledger.models import (
    Application,
    Principal,
    Response,
    ResponseStatus,
    is_null_principal,
)

if TYPE_CHECKING:
    from hiring_ledger.db.backend import LedgerBackend, LedgerTransaction

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(UTC)


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidInput(f"{field_name} must be a non-empty string")
    return value


def _require_principal(value: Any, field_name: str) -> Principal:
    if is_null_principal(value):
        raise InvalidInput(f"{field_name} must be a non-null principal")
    return value


def _require_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{field_name} must be an integer")
    return value


class LedgerStore:
    """
    Append-only application ledger with an owner-governed responder list.

    Args:
        backend: Persistence backend holding the ledger state. The owner is
            whatever the backend was seeded with (the deployer).
        bus: Notification bus. A private bus is created when omitted.
        clock: Source of record timestamps. Defaults to :func:`utc_now`.

    Example::

        store = LedgerStore(MemoryBackend(owner="hr-admin"))
        app_id = store.submit_application("bafy...", "Engineer", caller="alice")
        store.add_response(app_id, "looks good", ResponseStatus.REVIEWED, caller="hr-admin")
    """

    def __init__(
        self,
        backend: LedgerBackend,
        *,
        bus: EventBus | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.backend = backend
        self.bus = bus if bus is not None else EventBus()
        self._clock = clock or utc_now

    @contextmanager
    def _unit_of_work(self, operation: str, *, write: bool) -> Iterator[LedgerTransaction]:
        """Open a backend scope and map its failures to ledger errors."""
        scope = self.backend.transaction() if write else self.backend.snapshot()
        try:
            with scope as tx:
                yield tx
        except LedgerError as exc:
            log = logger.warning if write else logger.debug
            log("%s rejected: %s: %s", operation, exc.kind, exc)
            raise
        except DatabaseError as exc:
            logger.error("%s failed in %s backend: %s", operation, self.backend.name, exc)
            raise StorageFailure(operation, exc) from exc

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def submit_application(
        self, document_pointer: str, position: str, caller: Principal
    ) -> int:
        """
        Store a new, permanently immutable application.

        Anyone may submit. The new application starts with no responses.

        Args:
            document_pointer: Non-empty opaque pointer to the document.
            position: Non-empty name of the role applied for.
            caller: Submitting principal, recorded as the applicant.

        Returns:
            The new application id (``application_count`` after the insert).

        Raises:
            InvalidInput: If either string is empty or caller is null.
            StorageFailure: If the backend fails.
        """
        _require_text(document_pointer, "document_pointer")
        _require_text(position, "position")
        _require_principal(caller, "caller")

        with self._unit_of_work("submit_application", write=True) as tx:
            application = tx.insert_application(
                applicant=caller,
                document_pointer=document_pointer,
                position=position,
                submitted_at=self._clock(),
            )

        logger.info("Application %d submitted by %r", application.id, caller)
        self.bus.emit(
            Events.APPLICATION_SUBMITTED,
            {
                "id": application.id,
                "applicant": application.applicant,
                "document_pointer": application.document_pointer,
                "position": application.position,
            },
        )
        return application.id

    def add_response(
        self,
        app_id: int,
        message: str,
        status: ResponseStatus | str | int,
        caller: Principal,
    ) -> int:
        """
        Append a response to an existing application.

        Args:
            app_id: Target application id, ``1 <= app_id <= application_count``.
            message: Free text, may be empty.
            status: A :class:`ResponseStatus` or anything
                :meth:`ResponseStatus.parse` accepts.
            caller: Responding principal; must be owner or allow-listed.

        Returns:
            Zero-based index of the new response.

        Raises:
            InvalidInput: If ``app_id`` is not an integer, ``message`` is not a
                string or ``status`` is unknown.
            Unauthorized: If caller is neither owner nor allow-listed.
            NotFound: If ``app_id`` is outside ``[1, application_count]``.
            StorageFailure: If the backend fails.
        """
        _require_int(app_id, "app_id")
        if not isinstance(message, str):
            raise InvalidInput("message must be a string")
        resolved_status = ResponseStatus.parse(status)

        with self._unit_of_work("add_response", write=True) as tx:
            allowed = not is_null_principal(caller) and tx.is_responder(caller)
            permissions.require_responder(caller, owner=tx.get_owner(), allowed=allowed)
            self._require_existing(tx, app_id)
            index = tx.append_response(
                app_id,
                responder=caller,
                message=message,
                status=resolved_status,
                responded_at=self._clock(),
            )

        logger.info(
            "Response %d added to application %d by %r (%s)",
            index,
            app_id,
            caller,
            resolved_status.value,
        )
        self.bus.emit(
            Events.RESPONSE_ADDED,
            {
                "app_id": app_id,
                "response_index": index,
                "responder": caller,
                "status": resolved_status.value,
            },
        )
        return index

    def set_responder(self, target: Principal, allowed: bool, caller: Principal) -> None:
        """
        Grant or revoke a principal's right to append responses.

        Idempotent: setting the current value again is a valid no-op.

        Raises:
            Unauthorized: If caller is not the owner.
            InvalidInput: If target is null.
            StorageFailure: If the backend fails.
        """
        with self._unit_of_work("set_responder", write=True) as tx:
            permissions.require_owner(caller, owner=tx.get_owner(), action="set_responder")
            _require_principal(target, "target")
            tx.set_responder(target, bool(allowed))

        logger.info("Responder %r set to %s by %r", target, bool(allowed), caller)
        self.bus.emit(Events.RESPONDER_UPDATED, {"target": target, "allowed": bool(allowed)})

    def transfer_ownership(self, new_owner: Principal, caller: Principal) -> None:
        """
        Hand the owner role to ``new_owner``, effective for every later call.

        Raises:
            Unauthorized: If caller is not the owner.
            InvalidInput: If new_owner is null.
            StorageFailure: If the backend fails.
        """
        with self._unit_of_work("transfer_ownership", write=True) as tx:
            previous_owner = tx.get_owner()
            permissions.require_owner(caller, owner=previous_owner, action="transfer_ownership")
            _require_principal(new_owner, "new_owner")
            tx.set_owner(new_owner)

        logger.info("Ownership transferred from %r to %r", previous_owner, new_owner)
        self.bus.emit(
            Events.OWNERSHIP_TRANSFERRED,
            {"previous_owner": previous_owner, "new_owner": new_owner},
        )

    # =========================================================================
    # READS
    # =========================================================================

    def get_response_count(self, app_id: int) -> int:
        """
        Return the number of responses appended to ``app_id``.

        Unknown and out-of-range ids report ``0`` rather than an error.
        """
        _require_int(app_id, "app_id")
        with self._unit_of_work("get_response_count", write=False) as tx:
            if not 1 <= app_id <= tx.get_application_count():
                return 0
            return tx.count_responses(app_id)

    def get_response(self, app_id: int, index: int) -> Response:
        """
        Return the response at ``index`` exactly as it was appended.

        The result unpacks as ``(responder, message, status, responded_at)``.

        Raises:
            NotFound: If ``app_id`` is outside ``[1, application_count]``.
            IndexOutOfRange: If ``index`` is not in ``[0, count)``.
        """
        _require_int(app_id, "app_id")
        _require_int(index, "index")
        with self._unit_of_work("get_response", write=False) as tx:
            self._require_existing(tx, app_id)
            count = tx.count_responses(app_id)
            if not 0 <= index < count:
                raise IndexOutOfRange(
                    f"response index {index} out of range for application {app_id} "
                    f"(count={count})"
                )
            return tx.get_response(app_id, index)

    def get_responses(self, app_id: int) -> list[Response]:
        """Return every response for ``app_id`` in append order (empty if none)."""
        _require_int(app_id, "app_id")
        with self._unit_of_work("get_responses", write=False) as tx:
            if not 1 <= app_id <= tx.get_application_count():
                return []
            return tx.list_responses(app_id)

    def get_application(self, app_id: int) -> Application:
        """
        Return a stored application.

        Raises:
            NotFound: If ``app_id`` is outside ``[1, application_count]``.
        """
        _require_int(app_id, "app_id")
        with self._unit_of_work("get_application", write=False) as tx:
            return self._require_existing(tx, app_id)

    def is_responder(self, principal: Principal) -> bool:
        """Return the allow-list flag for ``principal`` (False if never set)."""
        if is_null_principal(principal):
            return False
        with self._unit_of_work("is_responder", write=False) as tx:
            return tx.is_responder(principal)

    @property
    def owner(self) -> Principal:
        """Current owner principal."""
        with self._unit_of_work("owner", write=False) as tx:
            return tx.get_owner()

    @property
    def application_count(self) -> int:
        """Number of applications ever submitted, also the latest id."""
        with self._unit_of_work("application_count", write=False) as tx:
            return tx.get_application_count()

    @staticmethod
    def _require_existing(tx: LedgerTransaction, app_id: int) -> Application:
        count = tx.get_application_count()
        if not 1 <= app_id <= count:
            raise NotFound(f"application {app_id} does not exist (application_count={count})")
        application = tx.get_application(app_id)
        if application is None:
            raise NotFound(f"application {app_id} does not exist")
        return application
