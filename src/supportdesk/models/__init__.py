"""Pydantic models for API payloads and stored records."""

from supportdesk.models.analytics import AnalyticsSummary, DailyCount, StatusCount  # noqa: F401
from supportdesk.models.audit import AuditEvent  # noqa: F401
from supportdesk.models.knowledge import KBArticle, KBArticleCreate, KBArticleSummary  # noqa: F401
from supportdesk.models.portal import (  # noqa: F401
    Attachment,
    AttachmentUpload,
    MagicLink,
    MagicLinkRequest,
    PresenceHeartbeat,
    PresenceViewers,
)
from supportdesk.models.response import ApiResponse  # noqa: F401
from supportdesk.models.ticket import (  # noqa: F401
    AuthorType,
    Category,
    CsatCreate,
    CsatRating,
    Macro,
    Message,
    MessageCreate,
    Priority,
    PublicMessageCreate,
    PublicTicketView,
    Requester,
    Sentiment,
    StatusUpdate,
    TagAdd,
    Ticket,
    TicketCreateRequest,
    TicketStatus,
)
from supportdesk.models.triage import (  # noqa: F401
    AiPing,
    TriagePreview,
    TriageRequest,
    TriageResult,
    TriageSource,
)
