"""
Ticket triage service.

Classifies tickets through an OpenAI-compatible chat completions endpoint and
falls back to keyword heuristics whenever the endpoint is not configured or
fails. Callers always get a fully populated result; nothing here raises.
"""

from __future__ import annotations

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from supportdesk.models.ticket import Category, Priority, Sentiment
from supportdesk.models.triage import AiPing, TriageResult, TriageSource
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

TRIAGE_SYSTEM_PROMPT = (
    "You are a support triage assistant. Classify the ticket and draft a short reply.\n"
    "Return strict JSON with keys: category, sentiment, reply.\n"
    "Categories: shipping, refund, bug, vip, other.\n"
    "Sentiment: positive, neutral, negative.\n"
    "Keep reply under 120 words, friendly, and actionable. Do not include JSON fences."
)

# Checked in order; first match wins. Only the outer alternatives are anchored,
# so "late" also matches "translate" and "cancel" does not match "cancelled".
CATEGORY_RULES = (
    (Category.SHIPPING, re.compile(r"\btracking|where.*order|deliv|ship|late|eta\b")),
    (Category.REFUND, re.compile(r"\brefund|return|chargeback|cancel\b")),
    (Category.BUG, re.compile(r"\berror|bug|broken|crash|doesn.?t work\b")),
    (Category.VIP, re.compile(r"\bvip|priority|enterprise|manager\b")),
)

URGENCY_KEYWORDS = ("urgent", "immediately", "asap")

UNAVAILABLE_TEMPLATE = "[AI unavailable: {reason}]"
MISSING_KEY_REASON = "OPENAI_API_KEY missing or invalid"


def is_unavailable(suggestion: Optional[str]) -> bool:
    """True for the placeholder returned when no suggestion could be drafted."""
    return (suggestion or "").startswith("[AI unavailable:")


def guess_category(text: str) -> Category:
    """Keyword classification over lower-cased ticket text."""
    lowered = (text or "").lower()
    for category, pattern in CATEGORY_RULES:
        if pattern.search(lowered):
            return category
    return Category.OTHER


def pick_priority(subject: str, body: str) -> Priority:
    """Urgency keywords promote a ticket to high priority (12h SLA)."""
    lowered = f"{subject} {body}".lower()
    if any(word in lowered for word in URGENCY_KEYWORDS):
        return Priority.HIGH
    return Priority.NORMAL


def normalize_category(value: Any) -> Category:
    try:
        return Category(str(value or "").strip().lower())
    except ValueError:
        return Category.OTHER


def normalize_sentiment(value: Any) -> Sentiment:
    try:
        return Sentiment(str(value or "").strip().lower())
    except ValueError:
        return Sentiment.NEUTRAL


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse model output as a JSON object.

    Models sometimes wrap the object in prose or fences, so if a direct parse
    fails the first balanced ``{...}`` span is tried. Returns {} when nothing
    usable is found.
    """
    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, dict) else {}
    except ValueError:
        pass

    start = text.find("{")
    while start != -1:
        span = _balanced_span(text, start)
        if span is None:
            return {}
        try:
            parsed = json.loads(span)
            if isinstance(parsed, dict):
                return parsed
        except ValueError:
            pass
        start = text.find("{", start + 1)
    return {}


def _balanced_span(text: str, start: int) -> Optional[str]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


@dataclass
class TriageClassifier:
    """Remote classification with a local keyword fallback."""

    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 8.0
    session: requests.Session = field(default_factory=requests.Session)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def classify(self, subject: str, body: str) -> TriageResult:
        """Classify a ticket; degrades to keywords on any remote failure."""
        if not self.enabled:
            return self._local(subject, body, TriageSource.LOCAL_FALLBACK)

        start = time.perf_counter()
        try:
            text = self._complete(
                [
                    {"role": "system", "content": TRIAGE_SYSTEM_PROMPT},
                    {"role": "user", "content": f"Subject: {subject}\n\nBody:\n{body}"},
                ],
                temperature=0.2,
            )
            parsed = extract_json_object(text or "{}")
            reply = parsed.get("reply")
            return TriageResult(
                category=normalize_category(parsed.get("category")),
                sentiment=normalize_sentiment(parsed.get("sentiment")),
                ai_suggestion=reply.strip() if isinstance(reply, str) and reply.strip() else None,
                source=TriageSource.OPENAI,
            )
        except Exception as exc:
            logger.warning(
                "Remote triage failed; falling back to keywords",
                extra={"error": str(exc)},
            )
            return self._local(subject, body, TriageSource.ERROR_FALLBACK)
        finally:
            logger.info(
                "Triage latency captured",
                extra={"duration_ms": int((time.perf_counter() - start) * 1000)},
            )

    def suggest_reply(self, subject: str, body: str, category: Optional[str] = None) -> str:
        """
        Draft an agent reply for the ticket.

        Returns a visible ``[AI unavailable: ...]`` placeholder instead of
        raising so consumers can detect degraded mode from the text alone.
        """
        if not self.enabled:
            return UNAVAILABLE_TEMPLATE.format(reason=MISSING_KEY_REASON)

        prompt = (
            "You are a concise, helpful customer support agent.\n"
            f"Ticket:\nSubject: {subject}\nCategory: {category or 'general'}\nBody:\n{body}\n\n"
            "Write a short, empathetic 3-5 sentence reply with next steps "
            "and any clarifying question."
        )
        try:
            text = (self._complete([{"role": "user", "content": prompt}], temperature=0.3) or "").strip()
            if not text:
                return UNAVAILABLE_TEMPLATE.format(reason="empty completion")
            return text
        except Exception as exc:
            logger.warning("Reply suggestion failed", extra={"error": str(exc)})
            return UNAVAILABLE_TEMPLATE.format(reason=str(exc) or exc.__class__.__name__)

    def ping(self) -> AiPing:
        """Round-trip a trivial prompt to check the key and endpoint actually work."""
        if not self.enabled:
            return AiPing(ok=False, reason=MISSING_KEY_REASON)
        try:
            text = self._complete([{"role": "user", "content": "Say OK"}], temperature=0)
            return AiPing(ok=True, text=(text or "").strip() or None)
        except Exception as exc:
            logger.warning("AI ping failed", extra={"error": str(exc)})
            return AiPing(ok=False, reason=str(exc) or exc.__class__.__name__)

    def _complete(self, messages: list, temperature: float) -> str:
        response = self.session.post(
            f"{self.base_url.rstrip('/')}/chat/completions",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={"model": self.model, "messages": messages, "temperature": temperature},
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        return payload["choices"][0]["message"]["content"]

    def _local(self, subject: str, body: str, source: TriageSource) -> TriageResult:
        """Keyword fallback; sentiment is not inferred on this path."""
        return TriageResult(
            category=guess_category(f"{subject}\n{body}"),
            sentiment=Sentiment.NEUTRAL,
            ai_suggestion=None,
            source=source,
        )
