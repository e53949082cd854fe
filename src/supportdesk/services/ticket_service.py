"""
Ticket store.

Owns every mutation of ticket state: creation (with triage), replies, status,
tags and CSAT. Each operation runs in its own transaction and bumps
``updated_at`` together with the change it makes; CSAT ratings are the one
exception, being telemetry about the ticket rather than a change to it.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection

from supportdesk.models.ticket import (
    AuthorType,
    CsatRating,
    Macro,
    Message,
    Priority,
    PublicTicketView,
    Ticket,
    TicketCreateRequest,
    TicketStatus,
)
from supportdesk.repositories.schema import csat, messages, tickets
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.services.audit_service import AuditTrail
from supportdesk.services.triage_service import TriageClassifier, is_unavailable, pick_priority
from supportdesk.utils.clock import Clock, from_iso, to_iso, utc_now
from supportdesk.utils.error_handling import ForbiddenError, NotFoundError, ValidationError
from supportdesk.utils.logging_config import get_logger
from supportdesk.utils.validators import normalize_email

logger = get_logger(__name__)

SLA_HOURS = {Priority.HIGH: 12, Priority.NORMAL: 24}

DEFAULT_MACROS = (
    Macro(
        id=1,
        name="Shipping delay apology",
        body=(
            "Sorry about the delay! We've escalated with our carrier. Please allow 24-48h. "
            "We'll keep you posted and refund shipping if it misses the new ETA."
        ),
    ),
    Macro(
        id=2,
        name="Refund policy",
        body=(
            "We can refund to the original payment method within 3-5 business days once the "
            "item is received back. I've sent a return label. Let me know if you need a pickup."
        ),
    ),
    Macro(
        id=3,
        name="Troubleshooting basics",
        body=(
            "Please try: 1) power cycle, 2) reseat cables, 3) factory reset. If that doesn't "
            "help, share a short video and your device firmware version."
        ),
    ),
)

_TAGS_FOR_TICKETS = text(
    "SELECT ticket_id, tag FROM ticket_tags WHERE ticket_id IN :ids ORDER BY tag"
).bindparams(bindparam("ids", expanding=True))


def sla_due_at(created_at: datetime, priority: Priority) -> datetime:
    """First-response deadline: 12h for high priority, 24h otherwise."""
    return created_at + timedelta(hours=SLA_HOURS[priority])


class TicketStore:
    """Durable CRUD over tickets, messages, tags and CSAT."""

    def __init__(
        self,
        repository: SqlRepository,
        classifier: TriageClassifier,
        audit: Optional[AuditTrail] = None,
        clock: Clock = utc_now,
    ):
        self.repository = repository
        self.classifier = classifier
        self.audit = audit
        self.clock = clock

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------
    def create_ticket(self, request: TicketCreateRequest) -> Ticket:
        """Triage, then persist the ticket and its originating customer message."""
        triage = self.classifier.classify(request.subject, request.body)
        priority = request.priority or pick_priority(request.subject, request.body)
        created_at = self.clock()
        ts = to_iso(created_at)

        with self.repository.transaction() as conn:
            ticket_id = self.repository.insert(
                tickets,
                {
                    "subject": request.subject,
                    "body": request.body,
                    "channel": request.channel,
                    "requester_email": request.requester.email,
                    "requester_name": request.requester.name,
                    "status": TicketStatus.NEW.value,
                    "priority": priority.value,
                    "category": triage.category.value,
                    "sentiment": triage.sentiment.value,
                    "sla_due_at": to_iso(sla_due_at(created_at, priority)),
                    "ai_suggestion": triage.ai_suggestion,
                    "created_at": ts,
                    "updated_at": ts,
                },
                conn,
            )
            self.repository.insert(
                messages,
                {
                    "ticket_id": ticket_id,
                    "author_type": AuthorType.CUSTOMER.value,
                    "body": request.body,
                    "created_at": ts,
                },
                conn,
            )
            ticket = self._load(conn, ticket_id)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket_id,
                "category": ticket.category.value,
                "priority": ticket.priority.value,
                "triage_source": triage.source.value,
            },
        )
        self._audit(
            "create",
            ticket_id,
            actor_type=AuthorType.CUSTOMER.value,
            actor=request.requester.email,
            payload={
                "subject": request.subject,
                "channel": request.channel,
                "category": ticket.category.value,
                "priority": ticket.priority.value,
                "triage_source": triage.source.value,
            },
        )
        return ticket

    def get_ticket(self, ticket_id: int) -> Ticket:
        with self.repository.transaction() as conn:
            return self._load(conn, ticket_id)

    def list_tickets(self) -> List[Ticket]:
        """All tickets, most recently updated first."""
        with self.repository.transaction() as conn:
            rows = self.repository.fetch_all(
                "SELECT * FROM tickets ORDER BY updated_at DESC, id DESC", conn=conn
            )
            return self._with_tags(conn, rows)

    def list_by_requester(self, email: str) -> List[Ticket]:
        """Tickets owned by ``email`` (case-insensitive), most recently updated first."""
        normalized = self._require_email(email)
        with self.repository.transaction() as conn:
            rows = self.repository.fetch_all(
                """
                SELECT * FROM tickets
                WHERE lower(requester_email) = :email
                ORDER BY updated_at DESC, id DESC
                """,
                {"email": normalized},
                conn,
            )
            return self._with_tags(conn, rows)

    def get_public_ticket(self, ticket_id: int, email: str) -> PublicTicketView:
        """Ticket and thread for its owner; ForbiddenError for anyone else."""
        normalized = self._require_email(email)
        with self.repository.transaction() as conn:
            row = self._require_owned(conn, ticket_id, normalized)
            return PublicTicketView(
                ticket=self._to_ticket(row, self._tags(conn, ticket_id)),
                messages=self._messages(conn, ticket_id),
            )

    def list_messages(self, ticket_id: int) -> List[Message]:
        with self.repository.transaction() as conn:
            self._require(conn, ticket_id)
            return self._messages(conn, ticket_id)

    def list_all_tags(self) -> List[str]:
        rows = self.repository.fetch_all("SELECT DISTINCT tag FROM ticket_tags ORDER BY tag")
        return [row["tag"] for row in rows]

    def list_macros(self) -> List[Macro]:
        return list(DEFAULT_MACROS)

    def ensure_suggestion(self, ticket_id: int, refresh: bool = False) -> Ticket:
        """
        Return the ticket with an AI reply suggestion filled in.

        The suggestion is drafted on first read (or when ``refresh`` is set)
        and cached on the row. Placeholders from a degraded classifier are
        returned but never cached, so the next read tries again.
        """
        ticket = self.get_ticket(ticket_id)
        if not refresh and (ticket.ai_suggestion or "").strip():
            return ticket

        logger.info("Drafting suggestion", extra={"ticket_id": ticket_id, "refresh": refresh})
        suggestion = self.classifier.suggest_reply(
            ticket.subject, ticket.body, ticket.category.value
        )
        if not is_unavailable(suggestion):
            self.repository.execute(
                "UPDATE tickets SET ai_suggestion = :suggestion WHERE id = :id",
                {"suggestion": suggestion, "id": ticket_id},
            )
        return ticket.model_copy(update={"ai_suggestion": suggestion})

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def append_message(
        self,
        ticket_id: int,
        author_type: Union[AuthorType, str],
        body: str,
        actor: str = "",
    ) -> Message:
        """Add a message to the thread and bump ``updated_at``."""
        author = self._parse_author(author_type)
        cleaned = self._require_body(body)
        with self.repository.transaction() as conn:
            row = self._require(conn, ticket_id)
            message = self._append(conn, row, author, cleaned)

        self._audit("reply", ticket_id, author.value, actor, {"message_id": message.id})
        return message

    def append_public_message(self, ticket_id: int, email: str, body: str) -> Message:
        """Customer reply through the portal; only the ticket owner may post."""
        normalized = self._require_email(email)
        cleaned = self._require_body(body)
        with self.repository.transaction() as conn:
            row = self._require_owned(conn, ticket_id, normalized)
            message = self._append(conn, row, AuthorType.CUSTOMER, cleaned)

        self._audit(
            "reply", ticket_id, AuthorType.CUSTOMER.value, normalized, {"message_id": message.id}
        )
        return message

    def set_status(
        self, ticket_id: int, status: Union[TicketStatus, str], actor: str = ""
    ) -> Ticket:
        """Move a ticket to any status; there is no transition table."""
        try:
            new_status = TicketStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in TicketStatus)
            raise ValidationError(f"status must be one of: {allowed}")

        with self.repository.transaction() as conn:
            row = self._require(conn, ticket_id)
            self.repository.execute(
                "UPDATE tickets SET status = :status, updated_at = :ts WHERE id = :id",
                {"status": new_status.value, "ts": self._mutation_ts(row), "id": ticket_id},
                conn,
            )
            ticket = self._load(conn, ticket_id)

        self._audit(
            "status",
            ticket_id,
            AuthorType.AGENT.value,
            actor,
            {"from": row["status"], "to": new_status.value},
        )
        return ticket

    def add_tag(self, ticket_id: int, tag: str, actor: str = "") -> Ticket:
        """Add a trimmed tag. Re-adding an existing tag only bumps ``updated_at``."""
        cleaned = tag.strip() if isinstance(tag, str) else ""
        if not cleaned:
            raise ValidationError("tag is required")

        with self.repository.transaction() as conn:
            row = self._require(conn, ticket_id)
            self.repository.execute(
                """
                INSERT INTO ticket_tags (ticket_id, tag) VALUES (:ticket_id, :tag)
                ON CONFLICT (ticket_id, tag) DO NOTHING
                """,
                {"ticket_id": ticket_id, "tag": cleaned},
                conn,
            )
            self._touch(conn, row)
            ticket = self._load(conn, ticket_id)

        self._audit("tag", ticket_id, AuthorType.AGENT.value, actor, {"tag": cleaned})
        return ticket

    def record_csat(
        self, ticket_id: int, rating: int, comment: Optional[str] = None
    ) -> CsatRating:
        """Store a 1-5 rating. Leaves ``updated_at`` untouched."""
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("rating must be an integer between 1 and 5")
        comment = (comment or "").strip() or None

        with self.repository.transaction() as conn:
            self._require(conn, ticket_id)
            ts = to_iso(self.clock())
            csat_id = self.repository.insert(
                csat,
                {"ticket_id": ticket_id, "rating": rating, "comment": comment, "created_at": ts},
                conn,
            )

        self._audit("csat", ticket_id, AuthorType.CUSTOMER.value, "", {"rating": rating})
        return CsatRating(
            id=csat_id, ticket_id=ticket_id, rating=rating, comment=comment, created_at=ts
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _append(
        self, conn: Connection, row: Dict[str, Any], author: AuthorType, body: str
    ) -> Message:
        # Clamp so a thread never goes back in time, even if the clock does.
        latest = self.repository.scalar(
            "SELECT MAX(created_at) FROM messages WHERE ticket_id = :id", {"id": row["id"]}, conn
        )
        floor = from_iso(latest) if latest else from_iso(row["created_at"])
        ts = to_iso(max(self.clock(), floor))

        message_id = self.repository.insert(
            messages,
            {"ticket_id": row["id"], "author_type": author.value, "body": body, "created_at": ts},
            conn,
        )
        self._touch(conn, row, ts)
        return Message(
            id=message_id, ticket_id=row["id"], author_type=author, body=body, created_at=ts
        )

    def _touch(self, conn: Connection, row: Dict[str, Any], ts: Optional[str] = None) -> None:
        self.repository.execute(
            "UPDATE tickets SET updated_at = :ts WHERE id = :id",
            {"ts": ts or self._mutation_ts(row), "id": row["id"]},
            conn,
        )

    def _mutation_ts(self, row: Dict[str, Any]) -> str:
        return to_iso(max(self.clock(), from_iso(row["created_at"])))

    def _require(self, conn: Connection, ticket_id: int) -> Dict[str, Any]:
        row = self.repository.fetch_one(
            "SELECT * FROM tickets WHERE id = :id", {"id": ticket_id}, conn
        )
        if not row:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return row

    def _require_owned(self, conn: Connection, ticket_id: int, email: str) -> Dict[str, Any]:
        row = self._require(conn, ticket_id)
        if normalize_email(row["requester_email"]) != email:
            logger.warning("Ownership check failed", extra={"ticket_id": ticket_id})
            raise ForbiddenError("Ticket does not belong to this requester")
        return row

    def _load(self, conn: Connection, ticket_id: int) -> Ticket:
        row = self._require(conn, ticket_id)
        return self._to_ticket(row, self._tags(conn, ticket_id))

    def _tags(self, conn: Connection, ticket_id: int) -> List[str]:
        rows = self.repository.fetch_all(
            "SELECT tag FROM ticket_tags WHERE ticket_id = :id ORDER BY tag", {"id": ticket_id}, conn
        )
        return [r["tag"] for r in rows]

    def _with_tags(self, conn: Connection, rows: List[Dict[str, Any]]) -> List[Ticket]:
        if not rows:
            return []
        tags: Dict[int, List[str]] = {}
        for tag_row in self.repository.fetch_all(
            _TAGS_FOR_TICKETS, {"ids": [r["id"] for r in rows]}, conn
        ):
            tags.setdefault(tag_row["ticket_id"], []).append(tag_row["tag"])
        return [self._to_ticket(row, tags.get(row["id"], [])) for row in rows]

    def _messages(self, conn: Connection, ticket_id: int) -> List[Message]:
        rows = self.repository.fetch_all(
            """
            SELECT id, ticket_id, author_type, body, created_at
            FROM messages WHERE ticket_id = :id
            ORDER BY created_at ASC, id ASC
            """,
            {"id": ticket_id},
            conn,
        )
        return [Message.model_validate(r) for r in rows]

    @staticmethod
    def _to_ticket(row: Dict[str, Any], tags: List[str]) -> Ticket:
        return Ticket.model_validate({**row, "tags": tags})

    @staticmethod
    def _parse_author(author_type: Union[AuthorType, str]) -> AuthorType:
        try:
            return AuthorType(author_type)
        except ValueError:
            allowed = ", ".join(a.value for a in AuthorType)
            raise ValidationError(f"author_type must be one of: {allowed}")

    @staticmethod
    def _require_body(body: str) -> str:
        cleaned = body.strip() if isinstance(body, str) else ""
        if not cleaned:
            raise ValidationError("body is required")
        return cleaned

    @staticmethod
    def _require_email(email: str) -> str:
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationError("email is required")
        return normalized

    def _audit(
        self,
        action: str,
        ticket_id: Optional[int],
        actor_type: str,
        actor: str = "",
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self.audit is not None:
            self.audit.record(
                action, ticket_id=ticket_id, actor_type=actor_type, actor=actor, payload=payload
            )
