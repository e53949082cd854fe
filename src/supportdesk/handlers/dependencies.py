"""
Lazily built collaborators shared by every handler.

Nothing connects at import time. Tests swap in their own instances with
``configure(...)`` and start fresh with ``reset()``.
"""

from __future__ import annotations

from typing import Any, Callable, Dict

from supportdesk.config import Settings
from supportdesk.repositories.database import create_db_engine, init_schema
from supportdesk.repositories.s3_repo import S3Repository
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.services.analytics_service import AnalyticsAggregator
from supportdesk.services.attachment_service import AttachmentService
from supportdesk.services.audit_service import AuditTrail
from supportdesk.services.auth_service import MagicLinkService
from supportdesk.services.kb_service import KnowledgeBase
from supportdesk.services.presence_service import PresenceTracker
from supportdesk.services.ticket_service import TicketStore
from supportdesk.services.triage_service import TriageClassifier
from supportdesk.utils.cache_service import ExpiringCache
from supportdesk.utils.clock import utc_now
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

_instances: Dict[str, Any] = {}


def configure(**instances: Any) -> None:
    """Override collaborators by name (settings, engine, clock, classifier, ...)."""
    _instances.update(instances)


def reset() -> None:
    _instances.clear()


def _lazy(name: str, factory: Callable[[], Any]) -> Any:
    if name not in _instances:
        _instances[name] = factory()
    return _instances[name]


def get_settings() -> Settings:
    return _lazy("settings", Settings.from_environment)


def get_clock():
    return _lazy("clock", lambda: utc_now)


def _build_engine():
    settings = get_settings()
    engine = create_db_engine(settings.database_url)
    fts_enabled = init_schema(engine)
    _instances.setdefault("fts_enabled", fts_enabled)
    logger.info(
        "Database ready",
        extra={"dialect": engine.dialect.name, "fts_enabled": fts_enabled},
    )
    return engine


def get_engine():
    return _lazy("engine", _build_engine)


def get_repository() -> SqlRepository:
    return _lazy("repository", lambda: SqlRepository(get_engine()))


def get_classifier() -> TriageClassifier:
    def build() -> TriageClassifier:
        settings = get_settings()
        return TriageClassifier(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout_seconds=settings.triage_timeout_seconds,
        )

    return _lazy("classifier", build)


def get_audit_trail() -> AuditTrail:
    return _lazy("audit", lambda: AuditTrail(get_repository(), clock=get_clock()))


def get_ticket_store() -> TicketStore:
    return _lazy(
        "ticket_store",
        lambda: TicketStore(
            get_repository(), get_classifier(), audit=get_audit_trail(), clock=get_clock()
        ),
    )


def get_analytics() -> AnalyticsAggregator:
    return _lazy("analytics", lambda: AnalyticsAggregator(get_repository(), clock=get_clock()))


def get_knowledge_base() -> KnowledgeBase:
    def build() -> KnowledgeBase:
        repository = get_repository()
        kb = KnowledgeBase(
            repository,
            clock=get_clock(),
            search_limit=get_settings().kb_search_limit,
            fts_enabled=_instances.get("fts_enabled"),
        )
        kb.seed_defaults()
        return kb

    return _lazy("knowledge_base", build)


def get_magic_links() -> MagicLinkService:
    def build() -> MagicLinkService:
        settings = get_settings()
        return MagicLinkService(
            base_url=settings.portal_base_url,
            ttl_seconds=settings.magic_link_ttl_seconds,
            cache=ExpiringCache(ttl_seconds=settings.magic_link_ttl_seconds, clock=get_clock()),
        )

    return _lazy("magic_links", build)


def get_presence() -> PresenceTracker:
    def build() -> PresenceTracker:
        ttl = get_settings().presence_ttl_seconds
        return PresenceTracker(cache=ExpiringCache(ttl_seconds=ttl, clock=get_clock()))

    return _lazy("presence", build)


def get_attachment_storage() -> S3Repository:
    def build() -> S3Repository:
        settings = get_settings()
        return S3Repository(settings.attachments_bucket, region=settings.aws_region)

    return _lazy("attachment_storage", build)


def get_attachments() -> AttachmentService:
    return _lazy(
        "attachments",
        lambda: AttachmentService(
            get_repository(), get_attachment_storage(), get_ticket_store(), clock=get_clock()
        ),
    )
