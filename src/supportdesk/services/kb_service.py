"""
Knowledge base service.

Articles live in ``kb_articles``. On SQLite an FTS5 index ranks search hits;
elsewhere, or when the index finds nothing, a case-insensitive LIKE scan is
used instead.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from supportdesk.models.knowledge import KBArticle, KBArticleCreate, KBArticleSummary
from supportdesk.repositories.schema import kb_articles
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.utils.clock import Clock, to_iso, utc_now
from supportdesk.utils.error_handling import NotFoundError, StorageError
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

EXCERPT_CHARS = 240

SEED_ARTICLES = (
    KBArticleCreate(
        title="Track your order",
        body=(
            "Visit Orders and enter your email and order number. If the carrier shows "
            "\"label created\", allow 24-48 hours for the first scan."
        ),
        tags=["shipping", "orders", "tracking"],
    ),
    KBArticleCreate(
        title="Start a return or exchange",
        body=(
            "We accept returns within 30 days. Use the Returns Portal to get a prepaid label. "
            "Refunds post 3-5 business days after we receive it."
        ),
        tags=["returns", "refund", "exchange"],
    ),
    KBArticleCreate(
        title="Troubleshoot connection issues",
        body=(
            "Power cycle the device, reseat cables, and factory reset. Check firmware is "
            "current. If issues persist, send a 30s video of the behavior."
        ),
        tags=["troubleshooting", "connectivity", "firmware"],
    ),
)


class KnowledgeBase:
    """Article storage with full-text search."""

    def __init__(
        self,
        repository: SqlRepository,
        clock: Clock = utc_now,
        search_limit: int = 10,
        fts_enabled: Optional[bool] = None,
    ):
        self.repository = repository
        self.clock = clock
        self.search_limit = search_limit
        self._fts_enabled = fts_enabled

    @property
    def fts_enabled(self) -> bool:
        if self._fts_enabled is None:
            self._fts_enabled = self._detect_fts()
        return self._fts_enabled

    def create_article(self, article: KBArticleCreate) -> KBArticle:
        ts = to_iso(self.clock())
        article_id = self.repository.insert(
            kb_articles,
            {
                "title": article.title,
                "body": article.body,
                "tags": json.dumps(article.tags),
                "created_at": ts,
                "updated_at": ts,
            },
        )
        logger.info("KB article created", extra={"article_id": article_id})
        return self.get_article(article_id)

    def get_article(self, article_id: int) -> KBArticle:
        row = self.repository.fetch_one(
            "SELECT * FROM kb_articles WHERE id = :id", {"id": article_id}
        )
        if not row:
            raise NotFoundError(f"Article {article_id} not found")
        return KBArticle.model_validate({**row, "tags": _tags(row.get("tags"))})

    def list_articles(self) -> List[KBArticleSummary]:
        rows = self.repository.fetch_all(
            "SELECT id, title, body, tags, updated_at FROM kb_articles "
            "ORDER BY updated_at DESC, id DESC"
        )
        return [_summary(row) for row in rows]

    def search(self, query: str, limit: Optional[int] = None) -> List[KBArticleSummary]:
        """Top ``limit`` articles matching the free-text query."""
        cleaned = (query or "").strip()
        if not cleaned:
            return []
        limit = limit or self.search_limit

        rows: List[Dict[str, Any]] = []
        if self.fts_enabled:
            rows = self._fts_search(cleaned, limit)
        if not rows:
            like = f"%{cleaned.lower()}%"
            rows = self.repository.fetch_all(
                """
                SELECT id, title, body, tags, updated_at FROM kb_articles
                WHERE lower(title) LIKE :like OR lower(body) LIKE :like
                ORDER BY updated_at DESC, id DESC
                LIMIT :limit
                """,
                {"like": like, "limit": limit},
            )

        logger.info(
            "KB search complete",
            extra={"query_length": len(cleaned), "results_count": len(rows)},
        )
        return [_summary(row) for row in rows]

    def seed_defaults(self) -> int:
        """Insert the starter articles into an empty knowledge base."""
        if self.repository.scalar("SELECT COUNT(*) FROM kb_articles"):
            return 0
        for article in SEED_ARTICLES:
            self.create_article(article)
        return len(SEED_ARTICLES)

    def _fts_search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        tokens = [token.replace('"', "") for token in query.split()]
        match = " ".join(f'"{token}"' for token in tokens if token)
        if not match:
            return []
        try:
            return self.repository.fetch_all(
                """
                SELECT a.id, a.title, a.body, a.tags, a.updated_at
                FROM kb_articles_fts
                JOIN kb_articles a ON a.id = kb_articles_fts.rowid
                WHERE kb_articles_fts MATCH :match
                ORDER BY kb_articles_fts.rank
                LIMIT :limit
                """,
                {"match": match, "limit": limit},
            )
        except StorageError:
            logger.warning("FTS query failed; using LIKE", extra={"query_length": len(query)})
            return []

    def _detect_fts(self) -> bool:
        if self.repository.dialect != "sqlite":
            return False
        return bool(
            self.repository.scalar(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = 'kb_articles_fts'"
            )
        )


def _tags(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return [part.strip() for part in raw.split(",") if part.strip()]
    return [str(v) for v in value] if isinstance(value, list) else []


def _summary(row: Dict[str, Any]) -> KBArticleSummary:
    return KBArticleSummary(
        id=row["id"],
        title=row["title"],
        excerpt=(row.get("body") or "")[:EXCERPT_CHARS],
        tags=_tags(row.get("tags")),
        updated_at=row["updated_at"],
    )
