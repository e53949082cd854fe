"""
Pytest configuration and shared fixtures.

Every store-backed fixture runs against a fresh in-memory SQLite database,
and the remote classifier is left unconfigured so no test reaches the
network.
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest


def _ensure_src_on_sys_path() -> None:
    """Add src/ to sys.path so ``import supportdesk`` works without an install."""
    src_str = str(Path(__file__).resolve().parents[1] / "src")
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_src_on_sys_path()

# Offline-friendly defaults so nothing needs AWS or OpenAI access.
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ATTACHMENTS_BUCKET", "test-attachments")
os.environ.pop("OPENAI_API_KEY", None)

from supportdesk.handlers import dependencies  # noqa: E402
from supportdesk.repositories.database import create_db_engine, init_schema  # noqa: E402
from supportdesk.repositories.sql_repo import SqlRepository  # noqa: E402
from supportdesk.services.analytics_service import AnalyticsAggregator  # noqa: E402
from supportdesk.services.audit_service import AuditTrail  # noqa: E402
from supportdesk.services.kb_service import KnowledgeBase  # noqa: E402
from supportdesk.services.ticket_service import TicketStore  # noqa: E402
from supportdesk.services.triage_service import TriageClassifier  # noqa: E402

START = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return SqlRepository(engine)


@pytest.fixture
def classifier():
    return TriageClassifier(api_key=None)


@pytest.fixture
def audit(repository, clock):
    return AuditTrail(repository, clock=clock)


@pytest.fixture
def store(repository, classifier, audit, clock):
    return TicketStore(repository, classifier, audit=audit, clock=clock)


@pytest.fixture
def analytics(repository, clock):
    return AnalyticsAggregator(repository, clock=clock)


@pytest.fixture
def kb(repository, clock):
    return KnowledgeBase(repository, clock=clock)


@pytest.fixture
def wired(engine, repository, classifier, audit, store, analytics, clock):
    """Point the handler dependencies at the test database."""
    dependencies.reset()
    dependencies.configure(
        engine=engine,
        repository=repository,
        classifier=classifier,
        audit=audit,
        ticket_store=store,
        analytics=analytics,
        clock=clock,
    )
    yield dependencies
    dependencies.reset()
