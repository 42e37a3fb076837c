"""
Access rules for ledger mutations.

Two roles exist:

    Owner      - administrative authority; manages the responder allow-list
                 and may hand ownership to another principal.
    Responder  - any principal set ``True`` on the allow-list; may append
                 responses to applications.

The owner may also append responses without being on the allow-list. Anyone
may submit an application, so submission has no rule here.

Checks are evaluated against the state visible inside the caller's
transaction, so a revocation or ownership transfer takes effect for every
call serialized after it.
"""

from __future__ import annotations

from hiring_ledger.ledger.errors import Unauthorized
from hiring_ledger.ledger.models import Principal


def can_append_response(caller: Principal, *, owner: Principal, allowed: bool) -> bool:
    """Return True when ``caller`` may append a response."""
    return caller == owner or allowed


def require_owner(caller: Principal, *, owner: Principal, action: str) -> None:
    """
    Raise :class:`Unauthorized` unless ``caller`` is the current owner.

    Args:
        caller: Principal invoking the operation.
        owner: Owner as read inside the current transaction.
        action: Operation name used in the error message.
    """
    if caller != owner:
        raise Unauthorized(f"{action} requires the ledger owner; caller {caller!r} is not owner")


def require_responder(caller: Principal, *, owner: Principal, allowed: bool) -> None:
    """Raise :class:`Unauthorized` unless ``caller`` is owner or allow-listed."""
    if not can_append_response(caller, owner=owner, allowed=allowed):
        raise Unauthorized(f"caller {caller!r} is neither owner nor an allowed responder")
