"""Lightweight health check handler."""

import os
from datetime import datetime, timezone

from supportdesk.handlers import dependencies
from supportdesk.handlers.responses import json_response
from supportdesk.utils.error_handling import StorageError


def lambda_handler(event, context):
    """Report liveness plus whether the database answers."""
    try:
        database_ok = dependencies.get_repository().ping()
    except StorageError:
        database_ok = False
    return json_response(
        200 if database_ok else 503,
        {
            "status": "ok" if database_ok else "degraded",
            "database": "ok" if database_ok else "unavailable",
            "ai_triage": "enabled" if dependencies.get_classifier().enabled else "local",
            "environment": os.environ.get("ENVIRONMENT", "dev"),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )
