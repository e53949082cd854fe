"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

Routes are matched in order against the full path; named groups become
``pathParameters`` so handlers read them the same way API Gateway delivers
them for per-route integrations.
"""

import re
from typing import Callable, Pattern, Tuple

from supportdesk.handlers import (
    ai,
    analytics,
    audit,
    auth,
    health_check,
    kb,
    presence,
    public,
    tickets,
    uploads,
)
from supportdesk.handlers.responses import json_response


def _route(method: str, pattern: str, handler: Callable) -> Tuple[str, Pattern, Callable]:
    return method, re.compile(f"^{pattern}/?$"), handler


# Literal segments (/tickets/meta/..., /tickets/triage) come before /tickets/{id}.
ROUTE_TABLE = (
    _route("GET", "/health", health_check.lambda_handler),
    _route("GET", "/ai/ping", ai.ping_handler),
    _route("GET", "/tickets", tickets.list_handler),
    _route("POST", "/tickets", tickets.create_handler),
    _route("POST", "/tickets/triage", tickets.triage_handler),
    _route("GET", "/tickets/meta/tags", tickets.all_tags_handler),
    _route("GET", "/tickets/meta/macros", tickets.macros_handler),
    _route("GET", "/tickets/meta/analytics", analytics.lambda_handler),
    _route("GET", r"/tickets/(?P<id>[^/]+)", tickets.get_handler),
    _route("GET", r"/tickets/(?P<id>[^/]+)/messages", tickets.messages_handler),
    _route("POST", r"/tickets/(?P<id>[^/]+)/messages", tickets.reply_handler),
    _route("POST", r"/tickets/(?P<id>[^/]+)/status", tickets.status_handler),
    _route("POST", r"/tickets/(?P<id>[^/]+)/tags", tickets.tag_handler),
    _route("POST", r"/tickets/(?P<id>[^/]+)/csat", tickets.csat_handler),
    _route("GET", "/public/tickets", public.list_handler),
    _route("GET", r"/public/tickets/(?P<id>[^/]+)", public.get_handler),
    _route("POST", r"/public/tickets/(?P<id>[^/]+)/messages", public.reply_handler),
    _route("GET", "/kb/search", kb.search_handler),
    _route("GET", "/kb/articles", kb.list_handler),
    _route("POST", "/kb/articles", kb.create_handler),
    _route("GET", r"/kb/articles/(?P<id>[^/]+)", kb.get_handler),
    _route("POST", "/auth/magic-link", auth.issue_handler),
    _route("GET", "/auth/magic-link/consume", auth.consume_handler),
    _route("GET", r"/presence/(?P<ticket_id>[^/]+)", presence.list_handler),
    _route("POST", r"/presence/(?P<ticket_id>[^/]+)", presence.heartbeat_handler),
    _route("DELETE", r"/presence/(?P<ticket_id>[^/]+)", presence.leave_handler),
    _route("GET", r"/audit/(?P<ticket_id>[^/]+)", audit.lambda_handler),
    _route("GET", r"/uploads/(?P<ticket_id>[^/]+)", uploads.list_handler),
    _route("POST", r"/uploads/(?P<ticket_id>[^/]+)", uploads.upload_handler),
)


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    http = event.get("requestContext", {}).get("http", {})
    method = http.get("method", "").upper()
    path = http.get("path", "")
    route_key = f"{method} {path}"

    for route_method, pattern, handler in ROUTE_TABLE:
        if route_method != method:
            continue
        match = pattern.match(path)
        if match:
            params = dict(event.get("pathParameters") or {})
            params.update(match.groupdict())
            return handler({**event, "pathParameters": params}, context)

    return json_response(404, {"message": "Route not found", "route": route_key})
