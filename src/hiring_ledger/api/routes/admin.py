"""Owner-only administration endpoints.

Covers the responder allow-list and ownership transfer. Authorization is
enforced by the ledger store against the caller in ``X-Principal``.
"""

from fastapi import APIRouter

from hiring_ledger.api.auth import CallerDep, StoreDep
from hiring_ledger.api.models import (
    ResponderStatusModel,
    SetResponderRequest,
    StatusModel,
    TransferOwnershipRequest,
)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/responders/{target}", response_model=ResponderStatusModel)
def get_responder(target: str, store: StoreDep):
    """Return the allow-list flag for a principal."""
    return ResponderStatusModel(target=target, allowed=store.is_responder(target))


@router.put("/responders/{target}", response_model=ResponderStatusModel)
def set_responder(target: str, request: SetResponderRequest, store: StoreDep, caller: CallerDep):
    """Grant or revoke a principal's right to append responses."""
    store.set_responder(target, request.allowed, caller=caller)
    return ResponderStatusModel(target=target, allowed=request.allowed)


@router.post("/ownership", response_model=StatusModel)
def transfer_ownership(request: TransferOwnershipRequest, store: StoreDep, caller: CallerDep):
    """Hand the owner role to another principal."""
    store.transfer_ownership(request.new_owner, caller=caller)
    return StatusModel(success=True, message=f"Ownership transferred to {request.new_owner}")
