"""Record types stored by the ledger.

Applications and responses are frozen dataclasses: once the ledger hands one
out it cannot be edited, which mirrors the append-only storage rule.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from hiring_ledger.ledger.errors import InvalidInput

# An opaque actor identifier. Any non-blank string is a valid principal.
Principal = str


def is_null_principal(value: Any) -> bool:
    """Return True when ``value`` cannot identify an actor."""
    return not isinstance(value, str) or not value.strip()


class ResponseStatus(Enum):
    """
    Status tag attached to a response.

    The values form a closed set but carry no ordering: any status may follow
    any other on the same application. ``NONE`` is a real value that can be
    appended, not the absence of a status.
    """

    NONE = "None"
    RECEIVED = "Received"
    REVIEWED = "Reviewed"
    INTERVIEW = "Interview"
    REJECTED = "Rejected"
    ACCEPTED = "Accepted"

    @classmethod
    def parse(cls, value: ResponseStatus | str | int) -> ResponseStatus:
        """
        Resolve a status from a member, a value/name string or an ordinal.

        Ordinals follow declaration order (``0`` is ``NONE``, ``5`` is
        ``ACCEPTED``). Strings match either the value (``"Interview"``) or the
        member name (``"INTERVIEW"``) without regard to case.

        Raises:
            InvalidInput: If the value names no status.
        """
        if isinstance(value, cls):
            return value
        members = list(cls)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(members):
                return members[value]
        elif isinstance(value, str):
            wanted = value.strip().lower()
            for member in members:
                if wanted in (member.value.lower(), member.name.lower()):
                    return member
        raise InvalidInput(f"unknown response status: {value!r}")


@dataclass(frozen=True, slots=True)
class Application:
    """
    A submitted application. Never mutated after creation.

    Attributes:
        id: Sequential id starting at 1.
        applicant: Principal that submitted the application.
        document_pointer: Opaque pointer to off-ledger content.
        position: Name of the role applied for.
        submitted_at: UTC creation time.
    """

    id: int
    applicant: Principal
    document_pointer: str
    position: str
    submitted_at: datetime


@dataclass(frozen=True, slots=True)
class Response:
    """
    One response appended to an application.

    Unpacks as ``(responder, message, status, responded_at)``.
    """

    responder: Principal
    message: str
    status: ResponseStatus
    responded_at: datetime

    def __iter__(self) -> Iterator[Any]:
        yield self.responder
        yield self.message
        yield self.status
        yield self.responded_at
