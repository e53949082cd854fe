"""Shared request parsing and response formatting for handlers."""

from __future__ import annotations

import base64
import binascii
import functools
import json
import uuid
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from supportdesk.utils.error_handling import AppError, NotFoundError, ValidationError, to_response
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

Handler = Callable[[dict, Any], Dict[str, Any]]


def _jsonable(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json")
    if isinstance(body, (list, tuple)):
        return [_jsonable(item) for item in body]
    if isinstance(body, dict):
        return {key: _jsonable(value) for key, value in body.items()}
    return body


def json_response(status: int, body: Any) -> Dict[str, Any]:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(_jsonable(body)),
    }


def parse_body(event: dict) -> Any:
    """Decode the JSON request body (base64-aware); empty bodies become {}."""
    raw = event.get("body")
    if not raw:
        return {}
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ValidationError("Request body is not valid base64") from exc
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc


def query_param(event: dict, name: str, default: Optional[str] = None) -> Optional[str]:
    return (event.get("queryStringParameters") or {}).get(name, default)


def int_path_param(event: dict, name: str) -> int:
    value = (event.get("pathParameters") or {}).get(name)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(f"Invalid {name}: {value!r}")


def handle_errors(operation: str) -> Callable[[Handler], Handler]:
    """
    Map domain errors to HTTP responses.

    AppError subclasses carry their own status code; anything else is logged
    with its traceback and reported as a 500.
    """

    def decorator(handler: Handler) -> Handler:
        @functools.wraps(handler)
        def wrapper(event, context):
            try:
                return handler(event, context)
            except AppError as exc:
                correlation_id = str(uuid.uuid4())
                logger.info(
                    f"{operation} rejected",
                    extra={
                        "correlation_id": correlation_id,
                        "status_code": exc.status_code,
                        "error": str(exc),
                    },
                )
                return to_response(exc, correlation_id)
            except PydanticValidationError as exc:
                correlation_id = str(uuid.uuid4())
                logger.info(f"{operation} rejected", extra={"correlation_id": correlation_id})
                return to_response(ValidationError(str(exc)), correlation_id)
            except Exception as exc:
                correlation_id = str(uuid.uuid4())
                logger.exception(f"{operation} failed", extra={"correlation_id": correlation_id})
                return json_response(
                    500,
                    {
                        "message": f"{operation} failed",
                        "error": str(exc),
                        "correlation_id": correlation_id,
                    },
                )

        return wrapper

    return decorator
