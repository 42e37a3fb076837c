"""Ledger package - append-only application ledger.

Applications are submitted once and never change. The owner, or any principal
the owner has allow-listed, may append responses to an application; responses
are never edited or removed.

Public surface
--------------
- :class:`LedgerStore`     - every ledger operation and access check.
- :class:`Application`     - immutable submitted application.
- :class:`Response`        - immutable appended response.
- :class:`ResponseStatus`  - closed set of response status tags.
- :exc:`LedgerError` and its kinds ``InvalidInput``, ``Unauthorized``,
  ``NotFound``, ``IndexOutOfRange``, ``StorageFailure``.

Usage example
-------------
::

    from hiring_ledger.db.memory_backend import MemoryBackend
    from hiring_ledger.ledger import LedgerStore, ResponseStatus

    store = LedgerStore(MemoryBackend(owner="hr-admin"))
    app_id = store.submit_application("bafybeigdyr...", "Engineer", caller="alice")
    store.add_response(app_id, "looks good", ResponseStatus.REVIEWED, caller="hr-admin")
"""

from hiring_ledger.ledger.errors import (
    IndexOutOfRange,
    InvalidInput,
    LedgerError,
    NotFound,
    StorageFailure,
    Unauthorized,
)
from hiring_ledger.ledger.models import Application, Principal, Response, ResponseStatus
from hiring_ledger.ledger.store import LedgerStore

__all__ = [
    "Application",
    "IndexOutOfRange",
    "InvalidInput",
    "LedgerError",
    "LedgerStore",
    "NotFound",
    "Principal",
    "Response",
    "ResponseStatus",
    "StorageFailure",
    "Unauthorized",
]
