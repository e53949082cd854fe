"""Relational schema for tickets, knowledge base, audit and attachments."""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

# Timestamps are ISO-8601 UTC strings (see utils.clock), so 40 chars is plenty.
TS = String(40)

tickets = Table(
    "tickets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("subject", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("channel", String(64), nullable=False, server_default="web"),
    Column("requester_email", String(320), nullable=False),
    Column("requester_name", String(255)),
    Column("status", String(16), nullable=False, server_default="new"),
    Column("priority", String(16), nullable=False, server_default="normal"),
    Column("category", String(16)),
    Column("sentiment", String(16)),
    Column("sla_due_at", TS),
    Column("ai_suggestion", Text),
    Column("created_at", TS, nullable=False),
    Column("updated_at", TS, nullable=False),
    Index("idx_tickets_status", "status"),
    Index("idx_tickets_updated", "updated_at"),
    Index("idx_tickets_requester", "requester_email"),
)

messages = Table(
    "messages",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticket_id", Integer, ForeignKey("tickets.id"), nullable=False),
    Column("author_type", String(16), nullable=False),
    Column("body", Text, nullable=False),
    Column("created_at", TS, nullable=False),
    Index("idx_messages_ticket", "ticket_id"),
)

ticket_tags = Table(
    "ticket_tags",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticket_id", Integer, ForeignKey("tickets.id"), nullable=False),
    Column("tag", String(128), nullable=False),
    UniqueConstraint("ticket_id", "tag", name="uq_ticket_tags_ticket_tag"),
)

csat = Table(
    "csat",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticket_id", Integer, ForeignKey("tickets.id"), nullable=False),
    Column("rating", Integer, nullable=False),
    Column("comment", Text),
    Column("created_at", TS, nullable=False),
    Index("idx_csat_ticket", "ticket_id"),
)

audit_log = Table(
    "audit_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticket_id", Integer),
    Column("actor_type", String(16), nullable=False, server_default="system"),
    Column("actor", String(320), nullable=False, server_default=""),
    Column("action", String(32), nullable=False),
    Column("payload", Text),
    Column("created_at", TS, nullable=False),
    Index("idx_audit_ticket", "ticket_id"),
)

kb_articles = Table(
    "kb_articles",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column("tags", Text),
    Column("created_at", TS, nullable=False),
    Column("updated_at", TS, nullable=False),
)

ticket_attachments = Table(
    "ticket_attachments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("ticket_id", Integer, ForeignKey("tickets.id"), nullable=False),
    Column("name", String(255), nullable=False),
    Column("storage_key", String(1024), nullable=False),
    Column("url", String(1024), nullable=False),
    Column("content_type", String(255), nullable=False),
    Column("size_bytes", Integer, nullable=False),
    Column("created_at", TS, nullable=False),
    Index("idx_att_ticket", "ticket_id"),
)

# SQLite-only full-text index over articles, kept in sync by triggers.
SQLITE_FTS_DDL = (
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS kb_articles_fts
    USING fts5(title, body, content='kb_articles', content_rowid='id')
    """,
    """
    CREATE TRIGGER IF NOT EXISTS kb_ai AFTER INSERT ON kb_articles BEGIN
      INSERT INTO kb_articles_fts(rowid, title, body) VALUES (new.id, new.title, new.body);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS kb_ad AFTER DELETE ON kb_articles BEGIN
      INSERT INTO kb_articles_fts(kb_articles_fts, rowid, title, body)
      VALUES ('delete', old.id, old.title, old.body);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS kb_au AFTER UPDATE ON kb_articles BEGIN
      INSERT INTO kb_articles_fts(kb_articles_fts, rowid, title, body)
      VALUES ('delete', old.id, old.title, old.body);
      INSERT INTO kb_articles_fts(rowid, title, body) VALUES (new.id, new.title, new.body);
    END
    """,
)
