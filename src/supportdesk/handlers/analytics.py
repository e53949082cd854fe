"""Handler for GET /tickets/meta/analytics."""

from supportdesk.handlers.dependencies import get_analytics
from supportdesk.handlers.responses import handle_errors, json_response


@handle_errors("Analytics")
def lambda_handler(event, context):
    """Recompute the dashboard summary on every request."""
    return json_response(200, get_analytics().summary())
