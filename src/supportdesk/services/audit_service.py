"""
Audit trail service.

Recording is best-effort: a failed write is logged and dropped so the
operation that triggered it is never affected.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from supportdesk.models.audit import AuditEvent
from supportdesk.repositories.schema import audit_log
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.utils.clock import Clock, to_iso, utc_now
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)


class AuditTrail:
    """Append-only log of who did what to which ticket."""

    def __init__(self, repository: SqlRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock

    def record(
        self,
        action: str,
        ticket_id: Optional[int] = None,
        actor_type: str = "system",
        actor: str = "",
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append an event. Never raises."""
        try:
            self.repository.insert(
                audit_log,
                {
                    "ticket_id": ticket_id,
                    "actor_type": actor_type,
                    "actor": actor or "",
                    "action": action,
                    "payload": json.dumps(payload, default=str) if payload is not None else None,
                    "created_at": to_iso(self.clock()),
                },
            )
        except Exception as exc:
            logger.warning(
                "Audit write dropped",
                extra={"action": action, "ticket_id": ticket_id, "error": str(exc)},
            )

    def list_for_ticket(self, ticket_id: int) -> List[AuditEvent]:
        """Events for a ticket, newest first."""
        rows = self.repository.fetch_all(
            "SELECT * FROM audit_log WHERE ticket_id = :ticket_id ORDER BY id DESC",
            {"ticket_id": ticket_id},
        )
        events = []
        for row in rows:
            row["payload"] = json.loads(row["payload"]) if row.get("payload") else None
            events.append(AuditEvent.model_validate(row))
        return events
