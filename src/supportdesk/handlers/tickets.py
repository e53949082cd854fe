"""
Agent-facing ticket handlers.

Each handler validates its payload into a pydantic model and delegates to
the TicketStore; error mapping lives in ``handle_errors``.
"""

from __future__ import annotations

from supportdesk.handlers.dependencies import get_classifier, get_ticket_store
from supportdesk.handlers.responses import (
    handle_errors,
    int_path_param,
    json_response,
    parse_body,
    query_param,
)
from supportdesk.models.response import ApiResponse
from supportdesk.models.ticket import CsatCreate, MessageCreate, StatusUpdate, TagAdd, TicketCreateRequest
from supportdesk.models.triage import TriagePreview, TriageRequest
from supportdesk.services.triage_service import pick_priority
from supportdesk.utils.logging_config import get_logger
from supportdesk.utils.validators import parse_payload

logger = get_logger(__name__)


@handle_errors("List tickets")
def list_handler(event, context):
    """GET /tickets"""
    return json_response(200, get_ticket_store().list_tickets())


@handle_errors("Ticket creation")
def create_handler(event, context):
    """POST /tickets"""
    request = parse_payload(TicketCreateRequest, parse_body(event))
    ticket = get_ticket_store().create_ticket(request)
    return json_response(201, ticket)


@handle_errors("Ticket lookup")
def get_handler(event, context):
    """GET /tickets/{id}?refreshAi=1"""
    ticket_id = int_path_param(event, "id")
    refresh = (query_param(event, "refreshAi") or "").lower() in ("1", "true")
    return json_response(200, get_ticket_store().ensure_suggestion(ticket_id, refresh=refresh))


@handle_errors("List messages")
def messages_handler(event, context):
    """GET /tickets/{id}/messages"""
    return json_response(200, get_ticket_store().list_messages(int_path_param(event, "id")))


@handle_errors("Reply")
def reply_handler(event, context):
    """POST /tickets/{id}/messages"""
    ticket_id = int_path_param(event, "id")
    payload = parse_payload(MessageCreate, parse_body(event))
    message = get_ticket_store().append_message(ticket_id, payload.author_type, payload.body)
    return json_response(201, message)


@handle_errors("Status change")
def status_handler(event, context):
    """POST /tickets/{id}/status"""
    ticket_id = int_path_param(event, "id")
    payload = parse_payload(StatusUpdate, parse_body(event))
    return json_response(200, get_ticket_store().set_status(ticket_id, payload.status))


@handle_errors("Tagging")
def tag_handler(event, context):
    """POST /tickets/{id}/tags"""
    ticket_id = int_path_param(event, "id")
    payload = parse_payload(TagAdd, parse_body(event))
    ticket = get_ticket_store().add_tag(ticket_id, payload.tag)
    return json_response(200, ApiResponse(data={"tags": ticket.tags}))


@handle_errors("CSAT")
def csat_handler(event, context):
    """POST /tickets/{id}/csat"""
    ticket_id = int_path_param(event, "id")
    payload = parse_payload(CsatCreate, parse_body(event))
    rating = get_ticket_store().record_csat(ticket_id, payload.rating, payload.comment)
    return json_response(201, rating)


@handle_errors("List tags")
def all_tags_handler(event, context):
    """GET /tickets/meta/tags"""
    return json_response(200, get_ticket_store().list_all_tags())


@handle_errors("List macros")
def macros_handler(event, context):
    """GET /tickets/meta/macros"""
    return json_response(200, get_ticket_store().list_macros())


@handle_errors("Triage preview")
def triage_handler(event, context):
    """POST /tickets/triage: classify without storing anything."""
    request = parse_payload(TriageRequest, parse_body(event))
    result = get_classifier().classify(request.subject, request.body)
    preview = TriagePreview(
        **result.model_dump(), priority=pick_priority(request.subject, request.body)
    )
    logger.info("Triage preview", extra={"source": preview.source.value})
    return json_response(200, preview)
