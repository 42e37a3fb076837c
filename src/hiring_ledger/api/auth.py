"""Caller identity and store access for route handlers.

The ledger trusts the transport to authenticate callers. Whatever sits in
front of this API (gateway, reverse proxy, signed-request middleware) is
expected to set ``X-Principal`` to the verified caller identity.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from hiring_ledger.ledger import InvalidInput, LedgerStore

PRINCIPAL_HEADER = "X-Principal"


def get_store(request: Request) -> LedgerStore:
    """Return the ledger store attached to the running app."""
    return request.app.state.store


def get_caller(
    x_principal: Annotated[str | None, Header(alias=PRINCIPAL_HEADER)] = None,
) -> str:
    """
    Resolve the calling principal from the request header.

    Raises:
        InvalidInput: If the header is missing or blank (mapped to HTTP 400).
    """
    if x_principal is None or not x_principal.strip():
        raise InvalidInput(f"{PRINCIPAL_HEADER} header is required")
    return x_principal.strip()


StoreDep = Annotated[LedgerStore, Depends(get_store)]
CallerDep = Annotated[str, Depends(get_caller)]
