"""
Magic-link issuance for the customer portal.

Tokens are single use and expire after ``ttl_seconds``. They live in an
ExpiringCache, so a restart invalidates outstanding links.
"""

from __future__ import annotations

import secrets
from typing import Optional
from urllib.parse import quote

from supportdesk.models.portal import MagicLink
from supportdesk.utils.cache_service import ExpiringCache
from supportdesk.utils.error_handling import ValidationError
from supportdesk.utils.logging_config import get_logger
from supportdesk.utils.validators import is_valid_email, normalize_email

logger = get_logger(__name__)


class MagicLinkService:
    """Issue and redeem one-time portal login links."""

    def __init__(
        self,
        base_url: str = "http://localhost:4000",
        ttl_seconds: int = 15 * 60,
        cache: Optional[ExpiringCache] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.ttl_seconds = ttl_seconds
        self.tokens = cache or ExpiringCache(ttl_seconds=ttl_seconds)

    def issue(self, email: str) -> MagicLink:
        normalized = normalize_email(email)
        if not normalized:
            raise ValidationError("email_required")
        if not is_valid_email(normalized):
            raise ValidationError("email must be a valid email address")

        self.tokens.sweep()
        token = secrets.token_urlsafe(24)
        self.tokens.set(token, normalized, ttl_seconds=self.ttl_seconds)
        logger.info("Magic link issued")
        return MagicLink(
            url=f"{self.base_url}/portal-login.html?token={quote(token)}",
            token=token,
            expires_in_seconds=self.ttl_seconds,
        )

    def consume(self, token: str) -> str:
        """
        Redeem a token for its email. A second redemption fails.

        Unknown, expired and already used tokens are not told apart; expired and
        redeemed tokens are gone from the cache either way.
        """
        email = self.tokens.pop(token) if token else None
        if email is None:
            raise ValidationError("invalid_or_expired")
        return email
