"""Ticket, message and CSAT models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from supportdesk.utils.validators import is_valid_email


class TicketStatus(str, Enum):
    """Lifecycle states. Any state may be set from any other."""

    NEW = "new"
    OPEN = "open"
    PENDING = "pending"
    SOLVED = "solved"


class Priority(str, Enum):
    NORMAL = "normal"
    HIGH = "high"


class Category(str, Enum):
    SHIPPING = "shipping"
    REFUND = "refund"
    BUG = "bug"
    VIP = "vip"
    OTHER = "other"


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class AuthorType(str, Enum):
    CUSTOMER = "customer"
    AGENT = "agent"
    SYSTEM = "system"


class Requester(BaseModel):
    """Customer identity attached to a ticket."""

    email: str
    name: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        cleaned = (value or "").strip()
        if not is_valid_email(cleaned):
            raise ValueError("requester.email must be a valid email address")
        return cleaned

    @field_validator("name")
    @classmethod
    def blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class TicketCreateRequest(BaseModel):
    """Inbound ticket payload."""

    subject: str
    body: str
    channel: str = "web"
    requester: Requester
    priority: Optional[Priority] = None

    @field_validator("subject", "body")
    @classmethod
    def validate_required(cls, value: str) -> str:
        """Reject empty strings before triage runs."""
        cleaned = (value or "").strip()
        if not cleaned:
            raise ValueError("subject and body must be provided")
        return cleaned

    @field_validator("channel", mode="before")
    @classmethod
    def default_channel(cls, value: Optional[str]) -> str:
        return (value or "").strip() or "web"


class MessageCreate(BaseModel):
    body: str
    author_type: AuthorType = AuthorType.AGENT


class PublicMessageCreate(BaseModel):
    body: str


class StatusUpdate(BaseModel):
    status: str


class TagAdd(BaseModel):
    tag: str


class CsatCreate(BaseModel):
    rating: int = Field(strict=True)
    comment: Optional[str] = None


class Ticket(BaseModel):
    """A stored ticket with its tag set."""

    id: int
    subject: str
    body: str
    channel: str = "web"
    requester_email: str
    requester_name: Optional[str] = None
    status: TicketStatus = TicketStatus.NEW
    priority: Priority = Priority.NORMAL
    category: Category = Category.OTHER
    sentiment: Optional[Sentiment] = None
    sla_due_at: datetime
    tags: List[str] = Field(default_factory=list)
    ai_suggestion: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class Message(BaseModel):
    id: int
    ticket_id: int
    author_type: AuthorType
    body: str
    created_at: datetime


class CsatRating(BaseModel):
    id: int
    ticket_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    created_at: datetime


class PublicTicketView(BaseModel):
    """What a customer sees for a ticket they own."""

    ticket: Ticket
    messages: List[Message] = Field(default_factory=list)


class Macro(BaseModel):
    """Canned agent reply."""

    id: int
    name: str
    body: str
