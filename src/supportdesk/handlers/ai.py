"""Handler for GET /ai/ping: checks the triage endpoint with a real completion."""

from supportdesk.handlers.dependencies import get_classifier
from supportdesk.handlers.responses import handle_errors, json_response


@handle_errors("AI ping")
def ping_handler(event, context):
    """400 without an API key, 500 when the completion fails."""
    classifier = get_classifier()
    result = classifier.ping()
    if not classifier.enabled:
        return json_response(400, result)
    return json_response(200 if result.ok else 500, result)
