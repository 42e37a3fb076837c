"""Health and root endpoints.

Provides the root ``/`` endpoint (API identity and version), the ``/health``
liveness check and the ``/ledger`` state summary.
"""

from fastapi import APIRouter

from hiring_ledger import __version__
from hiring_ledger.api.auth import StoreDep
from hiring_ledger.api.models import LedgerInfoModel

router = APIRouter()


@router.get("/")
def root():
    """Root endpoint showing API identity and current version."""
    return {"message": "Hiring Ledger API", "version": __version__}


@router.get("/health")
def health_check(store: StoreDep):
    """Health check endpoint."""
    return {"status": "ok", "backend": store.backend.name}


@router.get("/ledger", response_model=LedgerInfoModel)
def ledger_info(store: StoreDep):
    """Current owner and number of submitted applications."""
    return LedgerInfoModel(owner=store.owner, application_count=store.application_count)
