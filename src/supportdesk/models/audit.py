"""Audit trail models."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class AuditEvent(BaseModel):
    id: int
    ticket_id: Optional[int] = None
    actor_type: str
    actor: str = ""
    action: str
    payload: Optional[Dict[str, Any]] = None
    created_at: datetime
