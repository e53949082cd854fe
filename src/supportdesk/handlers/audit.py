"""Handler for GET /audit/{ticket_id}."""

from supportdesk.handlers.dependencies import get_audit_trail
from supportdesk.handlers.responses import handle_errors, int_path_param, json_response


@handle_errors("Audit lookup")
def lambda_handler(event, context):
    """Audit events for a ticket, newest first."""
    return json_response(200, get_audit_trail().list_for_ticket(int_path_param(event, "ticket_id")))
