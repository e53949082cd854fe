"""Triage classifier contract."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from supportdesk.models.ticket import Category, Priority, Sentiment


class TriageSource(str, Enum):
    """Which strategy produced a triage result."""

    OPENAI = "openai"
    LOCAL_FALLBACK = "local-fallback"
    ERROR_FALLBACK = "error-fallback"


class TriageRequest(BaseModel):
    subject: str
    body: str


class TriageResult(BaseModel):
    """Fully populated classification output; fields are never absent."""

    category: Category = Category.OTHER
    sentiment: Sentiment = Sentiment.NEUTRAL
    ai_suggestion: Optional[str] = None
    source: TriageSource = TriageSource.LOCAL_FALLBACK


class TriagePreview(TriageResult):
    """Triage output plus the priority the store would assign."""

    priority: Priority = Priority.NORMAL


class AiPing(BaseModel):
    """Result of a one-shot completion against the configured endpoint."""

    ok: bool
    text: Optional[str] = None
    reason: Optional[str] = None
