"""
Environment-specific configuration settings.

Defaults keep a fresh checkout runnable locally: SQLite on disk, no AI key
(local triage only) and short-lived portal tokens.
"""

from dataclasses import dataclass
import os
from typing import Optional


@dataclass
class Settings:
    """Application settings loaded from the environment."""

    # Environment
    environment: str = "dev"

    # Storage
    database_url: str = "sqlite:///data/support.db"

    # AI triage (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    triage_timeout_seconds: float = 8.0

    # Attachments
    attachments_bucket: str = "supportdesk-attachments"
    aws_region: str = "eu-west-2"

    # Customer portal
    portal_base_url: str = "http://localhost:4000"
    magic_link_ttl_seconds: int = 15 * 60
    presence_ttl_seconds: int = 30

    # Knowledge base
    kb_search_limit: int = 10

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        return cls(
            environment=env,
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            openai_api_key=os.environ.get("OPENAI_API_KEY") or None,
            openai_base_url=os.environ.get("OPENAI_BASE_URL", cls.openai_base_url),
            openai_model=os.environ.get("OPENAI_MODEL", cls.openai_model),
            triage_timeout_seconds=float(
                os.environ.get("TRIAGE_TIMEOUT_SECONDS", cls.triage_timeout_seconds)
            ),
            attachments_bucket=os.environ.get("ATTACHMENTS_BUCKET", cls.attachments_bucket),
            aws_region=os.environ.get("AWS_REGION", cls.aws_region),
            portal_base_url=os.environ.get("PORTAL_BASE_URL", cls.portal_base_url),
            magic_link_ttl_seconds=int(
                os.environ.get("MAGIC_LINK_TTL_SECONDS", cls.magic_link_ttl_seconds)
            ),
            presence_ttl_seconds=int(
                os.environ.get("PRESENCE_TTL_SECONDS", cls.presence_ttl_seconds)
            ),
            kb_search_limit=int(os.environ.get("KB_SEARCH_LIMIT", cls.kb_search_limit)),
        )
