"""
Pydantic models for API requests and responses.

Models are organized into two categories:
1. Request models: data sent FROM the client TO the server
2. Response models: data sent FROM the server TO the client

The caller principal is never part of a request body; it travels in the
``X-Principal`` header (see :mod:`hiring_ledger.api.auth`).
"""

from datetime import datetime

from pydantic import BaseModel

from hiring_ledger.ledger.models import Application, Response

# ============================================================================
# REQUEST MODELS (Client → Server)
# ============================================================================


class SubmitApplicationRequest(BaseModel):
    """
    New application.

    Attributes:
        document_pointer: Opaque pointer to the off-ledger document (non-empty)
        position: Role applied for (non-empty)
    """

    document_pointer: str
    position: str


class AddResponseRequest(BaseModel):
    """
    Response to append to an application.

    Attributes:
        message: Free text, may be empty
        status: Status value or name, e.g. "Interview" or "INTERVIEW"
    """

    message: str = ""
    status: str


class SetResponderRequest(BaseModel):
    """Allow-list flag for a principal."""

    allowed: bool


class TransferOwnershipRequest(BaseModel):
    """Principal that becomes the new owner."""

    new_owner: str


# ============================================================================
# RESPONSE MODELS (Server → Client)
# ============================================================================


class SubmitApplicationResponse(BaseModel):
    """Id assigned to a newly submitted application."""

    id: int


class ApplicationModel(BaseModel):
    """A stored application."""

    id: int
    applicant: str
    document_pointer: str
    position: str
    submitted_at: datetime

    @classmethod
    def from_record(cls, application: Application) -> "ApplicationModel":
        return cls(
            id=application.id,
            applicant=application.applicant,
            document_pointer=application.document_pointer,
            position=application.position,
            submitted_at=application.submitted_at,
        )


class AddResponseResult(BaseModel):
    """Index assigned to a newly appended response."""

    app_id: int
    response_index: int


class ResponseRecordModel(BaseModel):
    """One stored response, with its position in the application's history."""

    index: int
    responder: str
    message: str
    status: str
    responded_at: datetime

    @classmethod
    def from_record(cls, index: int, response: Response) -> "ResponseRecordModel":
        return cls(
            index=index,
            responder=response.responder,
            message=response.message,
            status=response.status.value,
            responded_at=response.responded_at,
        )


class ResponseListModel(BaseModel):
    """Full response history of an application."""

    app_id: int
    responses: list[ResponseRecordModel]


class ResponseCountModel(BaseModel):
    """Number of responses stored for an application."""

    app_id: int
    count: int


class ResponderStatusModel(BaseModel):
    """Allow-list flag of a principal."""

    target: str
    allowed: bool


class LedgerInfoModel(BaseModel):
    """Ledger-wide state summary."""

    owner: str
    application_count: int


class StatusModel(BaseModel):
    """Generic acknowledgement."""

    success: bool
    message: str


class ErrorModel(BaseModel):
    """Error body returned for every ledger error."""

    detail: str
    error: str
