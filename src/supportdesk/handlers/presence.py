"""Agent presence handlers: heartbeat, leave and list viewers."""

from supportdesk.handlers.dependencies import get_presence
from supportdesk.handlers.responses import (
    handle_errors,
    int_path_param,
    json_response,
    parse_body,
    query_param,
)
from supportdesk.models.portal import PresenceHeartbeat, PresenceViewers
from supportdesk.utils.validators import parse_payload


def _agent_id(event) -> str:
    """Agent id from ``?agentId=`` when given, else the JSON body (``agentId`` or ``agent_id``)."""
    beat = parse_payload(PresenceHeartbeat, parse_body(event))
    return query_param(event, "agentId") or beat.agent_id


def _viewers(ticket_id: int) -> PresenceViewers:
    return PresenceViewers(ticket_id=ticket_id, viewers=get_presence().viewers(ticket_id))


@handle_errors("Presence heartbeat")
def heartbeat_handler(event, context):
    """POST /presence/{ticket_id}"""
    ticket_id = int_path_param(event, "ticket_id")
    get_presence().heartbeat(ticket_id, _agent_id(event))
    return json_response(200, _viewers(ticket_id))


@handle_errors("Presence leave")
def leave_handler(event, context):
    """DELETE /presence/{ticket_id}"""
    ticket_id = int_path_param(event, "ticket_id")
    get_presence().leave(ticket_id, _agent_id(event))
    return json_response(200, _viewers(ticket_id))


@handle_errors("Presence list")
def list_handler(event, context):
    """GET /presence/{ticket_id}"""
    return json_response(200, _viewers(int_path_param(event, "ticket_id")))
