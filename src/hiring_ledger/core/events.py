"""
Event Type Constants for the Hiring Ledger

This module defines the notification types the ledger emits. Using constants
instead of string literals gives one source of truth for event names and turns
typos into attribute errors.

=============================================================================
NAMING CONVENTION
=============================================================================

Events use "domain:action" format in PAST TENSE:

    Good: "application:submitted", "response:added"
    Bad:  "submit_application", "response:add"

Events record facts that already happened. They are emitted after the ledger
transaction commits and are meant for external indexers and UIs.

=============================================================================
USAGE
=============================================================================

    from hiring_ledger.core.events import Events

    store.bus.on(Events.RESPONSE_ADDED, index_response)

=============================================================================
"""


class Events:
    """All ledger notification types."""

    APPLICATION_SUBMITTED = "application:submitted"
    """
    Emitted after a new application is stored.

    Detail:
        id: int - New application id
        applicant: str - Submitting principal
        document_pointer: str - Opaque pointer to the document
        position: str - Role applied for
    """

    RESPONSE_ADDED = "response:added"
    """
    Emitted after a response is appended to an application.

    Detail:
        app_id: int - Application the response belongs to
        response_index: int - Zero-based index of the new response
        responder: str - Principal that appended it
        status: str - Response status value (e.g. "Interview")
    """

    RESPONDER_UPDATED = "responder:updated"
    """
    Emitted after the owner sets a principal's allow-list flag.

    Detail:
        target: str - Principal whose flag was set
        allowed: bool - New flag value
    """

    OWNERSHIP_TRANSFERRED = "ownership:transferred"
    """
    Emitted after ownership moves to a new principal.

    Detail:
        previous_owner: str
        new_owner: str
    """


def is_valid_event_type(event_type: str) -> bool:
    """Return True if ``event_type`` is one of the constants on :class:`Events`."""
    return event_type in get_all_event_types()


def get_all_event_types() -> list[str]:
    """Return every standard event type, sorted."""
    return sorted(
        value
        for name, value in vars(Events).items()
        if isinstance(value, str) and not name.startswith("_")
    )
