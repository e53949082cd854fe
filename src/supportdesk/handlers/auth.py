"""Magic-link handlers for the customer portal."""

from supportdesk.handlers.dependencies import get_magic_links
from supportdesk.handlers.responses import handle_errors, json_response, parse_body, query_param
from supportdesk.models.portal import MagicLinkRequest
from supportdesk.models.response import ApiResponse
from supportdesk.utils.validators import parse_payload


@handle_errors("Magic link")
def issue_handler(event, context):
    """
    POST /auth/magic-link

    The URL is returned in the response for local use; a deployment would
    email it instead.
    """
    request = parse_payload(MagicLinkRequest, parse_body(event))
    return json_response(200, get_magic_links().issue(request.email))


@handle_errors("Magic link consume")
def consume_handler(event, context):
    """GET /auth/magic-link/consume?token="""
    email = get_magic_links().consume(query_param(event, "token", ""))
    return json_response(200, ApiResponse(data={"email": email}))
