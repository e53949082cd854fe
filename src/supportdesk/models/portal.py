"""Customer portal models: magic links, presence and attachments."""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


class MagicLinkRequest(BaseModel):
    email: str


class MagicLink(BaseModel):
    url: str
    token: str
    expires_in_seconds: int


class PresenceHeartbeat(BaseModel):
    agent_id: str = Field(default="agent", validation_alias=AliasChoices("agent_id", "agentId"))


class PresenceViewers(BaseModel):
    ticket_id: int
    viewers: List[str] = Field(default_factory=list)


class AttachmentUpload(BaseModel):
    """JSON upload body; API Gateway delivers binary payloads base64 encoded."""

    filename: str
    content_base64: str
    content_type: str = "application/octet-stream"


class Attachment(BaseModel):
    id: int
    ticket_id: int
    name: str
    storage_key: str
    url: str
    content_type: str
    size_bytes: int
    created_at: datetime
    download_url: Optional[str] = None
