"""Ticket attachments: blobs in S3, metadata rows in the database."""

from __future__ import annotations

import re
from typing import List

from botocore.exceptions import BotoCoreError, ClientError

from supportdesk.models.portal import Attachment
from supportdesk.repositories.s3_repo import S3Repository
from supportdesk.repositories.schema import ticket_attachments
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.services.ticket_service import TicketStore
from supportdesk.utils.clock import Clock, to_iso, utc_now
from supportdesk.utils.error_handling import StorageError, ValidationError
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

UNSAFE_CHARS = re.compile(r"[^\w.\-]")


def safe_filename(name: str) -> str:
    return UNSAFE_CHARS.sub("_", name.strip())


class AttachmentService:
    """Upload and list files attached to a ticket."""

    def __init__(
        self,
        repository: SqlRepository,
        storage: S3Repository,
        tickets: TicketStore,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.storage = storage
        self.tickets = tickets
        self.clock = clock

    def upload(
        self,
        ticket_id: int,
        filename: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Attachment:
        if not (filename or "").strip():
            raise ValidationError("filename is required")
        if not content:
            raise ValidationError("file content is empty")
        self.tickets.get_ticket(ticket_id)

        now = self.clock()
        key = f"tickets/{ticket_id}/{int(now.timestamp() * 1000)}_{safe_filename(filename)}"
        try:
            url = self.storage.upload_bytes(key, content, content_type)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Attachment upload failed", extra={"ticket_id": ticket_id, "error": str(exc)})
            raise StorageError("Attachment storage unavailable") from exc

        values = {
            "ticket_id": ticket_id,
            "name": filename.strip(),
            "storage_key": key,
            "url": url,
            "content_type": content_type,
            "size_bytes": len(content),
            "created_at": to_iso(now),
        }
        attachment_id = self.repository.insert(ticket_attachments, values)
        logger.info("Attachment stored", extra={"ticket_id": ticket_id, "size_bytes": len(content)})
        return Attachment(id=attachment_id, **values)

    def list(self, ticket_id: int, with_links: bool = True) -> List[Attachment]:
        """Attachments for a ticket, newest first, optionally with presigned links."""
        self.tickets.get_ticket(ticket_id)
        rows = self.repository.fetch_all(
            "SELECT * FROM ticket_attachments WHERE ticket_id = :id ORDER BY id DESC",
            {"id": ticket_id},
        )
        attachments = [Attachment.model_validate(row) for row in rows]
        if with_links:
            for attachment in attachments:
                try:
                    attachment.download_url = self.storage.presigned_url(attachment.storage_key)
                except (BotoCoreError, ClientError) as exc:
                    logger.warning(
                        "Could not sign attachment URL",
                        extra={"attachment_id": attachment.id, "error": str(exc)},
                    )
        return attachments
