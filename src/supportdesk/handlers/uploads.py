"""Attachment upload handlers."""

import base64
import binascii

from supportdesk.handlers.dependencies import get_attachments, get_audit_trail
from supportdesk.handlers.responses import handle_errors, int_path_param, json_response, parse_body
from supportdesk.models.portal import AttachmentUpload
from supportdesk.utils.error_handling import ValidationError
from supportdesk.utils.validators import parse_payload


@handle_errors("Attachment upload")
def upload_handler(event, context):
    """POST /uploads/{ticket_id} with {filename, content_base64, content_type}."""
    ticket_id = int_path_param(event, "ticket_id")
    upload = parse_payload(AttachmentUpload, parse_body(event))
    try:
        content = base64.b64decode(upload.content_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("content_base64 is not valid base64") from exc

    attachment = get_attachments().upload(ticket_id, upload.filename, content, upload.content_type)
    get_audit_trail().record(
        "upload", ticket_id=ticket_id, actor_type="agent", payload={"name": attachment.name}
    )
    return json_response(201, attachment)


@handle_errors("Attachment list")
def list_handler(event, context):
    """GET /uploads/{ticket_id}"""
    return json_response(200, get_attachments().list(int_path_param(event, "ticket_id")))
