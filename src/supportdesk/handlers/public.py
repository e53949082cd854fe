"""
Customer portal handlers.

Access is decided solely by the ``email`` query parameter matching the
ticket's requester email; pair with the magic-link flow for anything beyond
a demo.
"""

from supportdesk.handlers.dependencies import get_ticket_store
from supportdesk.handlers.responses import (
    handle_errors,
    int_path_param,
    json_response,
    parse_body,
    query_param,
)
from supportdesk.models.ticket import PublicMessageCreate
from supportdesk.utils.validators import parse_payload


@handle_errors("Portal ticket list")
def list_handler(event, context):
    """GET /public/tickets?email="""
    return json_response(200, get_ticket_store().list_by_requester(query_param(event, "email", "")))


@handle_errors("Portal ticket lookup")
def get_handler(event, context):
    """GET /public/tickets/{id}?email="""
    view = get_ticket_store().get_public_ticket(
        int_path_param(event, "id"), query_param(event, "email", "")
    )
    return json_response(200, view)


@handle_errors("Portal reply")
def reply_handler(event, context):
    """POST /public/tickets/{id}/messages?email="""
    payload = parse_payload(PublicMessageCreate, parse_body(event))
    message = get_ticket_store().append_public_message(
        int_path_param(event, "id"), query_param(event, "email", ""), payload.body
    )
    return json_response(201, message)
