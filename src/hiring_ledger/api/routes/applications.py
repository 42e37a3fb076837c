"""Application and response endpoints.

Submitting and reading are open to everyone. Appending a response requires
the caller in ``X-Principal`` to be the owner or an allow-listed responder.
"""

from fastapi import APIRouter, status

from hiring_ledger.api.auth import CallerDep, StoreDep
from hiring_ledger.api.models import (
    AddResponseRequest,
    AddResponseResult,
    ApplicationModel,
    ResponseCountModel,
    ResponseListModel,
    ResponseRecordModel,
    SubmitApplicationRequest,
    SubmitApplicationResponse,
)

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post(
    "",
    response_model=SubmitApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def submit_application(request: SubmitApplicationRequest, store: StoreDep, caller: CallerDep):
    """Submit a new application; the caller becomes the applicant."""
    app_id = store.submit_application(request.document_pointer, request.position, caller=caller)
    return SubmitApplicationResponse(id=app_id)


@router.get("/{app_id}", response_model=ApplicationModel)
def get_application(app_id: int, store: StoreDep):
    """Return one application."""
    return ApplicationModel.from_record(store.get_application(app_id))


@router.post(
    "/{app_id}/responses",
    response_model=AddResponseResult,
    status_code=status.HTTP_201_CREATED,
)
def add_response(app_id: int, request: AddResponseRequest, store: StoreDep, caller: CallerDep):
    """Append a response to an application."""
    index = store.add_response(app_id, request.message, request.status, caller=caller)
    return AddResponseResult(app_id=app_id, response_index=index)


@router.get("/{app_id}/responses", response_model=ResponseListModel)
def list_responses(app_id: int, store: StoreDep):
    """Return the full response history in append order."""
    responses = store.get_responses(app_id)
    return ResponseListModel(
        app_id=app_id,
        responses=[
            ResponseRecordModel.from_record(index, response)
            for index, response in enumerate(responses)
        ],
    )


@router.get("/{app_id}/responses/count", response_model=ResponseCountModel)
def get_response_count(app_id: int, store: StoreDep):
    """Number of responses; 0 for unknown applications."""
    return ResponseCountModel(app_id=app_id, count=store.get_response_count(app_id))


@router.get("/{app_id}/responses/{index}", response_model=ResponseRecordModel)
def get_response(app_id: int, index: int, store: StoreDep):
    """Return one response by its zero-based index."""
    return ResponseRecordModel.from_record(index, store.get_response(app_id, index))
