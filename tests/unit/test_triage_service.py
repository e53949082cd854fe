"""
TriageClassifier tests. The HTTP session is mocked; nothing leaves the process.
"""

from unittest.mock import MagicMock

import pytest
import requests

from supportdesk.models.ticket import Category, Priority, Sentiment
from supportdesk.models.triage import TriageSource
from supportdesk.services.triage_service import (
    TriageClassifier,
    extract_json_object,
    guess_category,
    is_unavailable,
    pick_priority,
)


def completion(content):
    response = MagicMock()
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    response.raise_for_status.return_value = None
    return response


def remote_classifier(session):
    return TriageClassifier(api_key="sk-test", base_url="https://llm.local/v1/", session=session)


class TestKeywordRules:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Where is my order?", Category.SHIPPING),
            ("Tracking number please", Category.SHIPPING),
            ("I want a refund", Category.REFUND),
            ("Please cancel my subscription", Category.REFUND),
            ("App crash on login", Category.BUG),
            ("The button doesn't work", Category.BUG),
            ("Enterprise account question", Category.VIP),
            ("Hello there", Category.OTHER),
        ],
    )
    def test_guess_category(self, text, expected):
        assert guess_category(text) == expected

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("The app shows a debug screen", Category.BUG),
            ("Question about the beta", Category.SHIPPING),
            ("My order was cancelled", Category.OTHER),
            ("Please translate this page", Category.SHIPPING),
        ],
    )
    def test_only_outer_keywords_are_word_anchored(self, text, expected):
        assert guess_category(text) == expected

    def test_shipping_rule_is_checked_before_refund(self):
        assert guess_category("Refund me, the delivery never came") == Category.SHIPPING

    @pytest.mark.parametrize("word", ["URGENT", "immediately", "asap"])
    def test_urgency_keywords(self, word):
        assert pick_priority("Help", f"please fix {word}") == Priority.HIGH

    def test_no_urgency_is_normal(self):
        assert pick_priority("Help", "whenever you can") == Priority.NORMAL


class TestExtractJson:
    def test_plain_object(self):
        assert extract_json_object('{"category": "bug"}') == {"category": "bug"}

    def test_object_wrapped_in_prose(self):
        text = 'Sure! Here you go:\n```json\n{"category": "refund", "reply": "Use {curly} text"}\n```'
        assert extract_json_object(text) == {"category": "refund", "reply": "Use {curly} text"}

    def test_garbage_returns_empty(self):
        assert extract_json_object("no json here {") == {}

    def test_non_object_json_returns_empty(self):
        assert extract_json_object("[1, 2]") == {}


class TestClassify:
    def test_without_key_uses_local_fallback(self):
        session = MagicMock()
        result = TriageClassifier(api_key=None, session=session).classify("Order late", "where?")

        assert result.source == TriageSource.LOCAL_FALLBACK
        assert result.category == Category.SHIPPING
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.ai_suggestion is None
        session.post.assert_not_called()

    def test_remote_result_is_normalized(self):
        session = MagicMock()
        session.post.return_value = completion(
            '{"category": "Refund", "sentiment": "NEGATIVE", "reply": "  Sorry!  "}'
        )
        result = remote_classifier(session).classify("Money back", "now")

        assert result.source == TriageSource.OPENAI
        assert result.category == Category.REFUND
        assert result.sentiment == Sentiment.NEGATIVE
        assert result.ai_suggestion == "Sorry!"
        url = session.post.call_args.args[0]
        assert url == "https://llm.local/v1/chat/completions"
        assert session.post.call_args.kwargs["timeout"] == 8.0

    def test_unknown_labels_fall_back_to_defaults(self):
        session = MagicMock()
        session.post.return_value = completion('{"category": "billing", "sentiment": "meh"}')
        result = remote_classifier(session).classify("x", "y")

        assert result.category == Category.OTHER
        assert result.sentiment == Sentiment.NEUTRAL
        assert result.ai_suggestion is None

    def test_network_error_never_raises(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("down")
        result = remote_classifier(session).classify("Order late", "still waiting")

        assert result.source == TriageSource.ERROR_FALLBACK
        assert result.category == Category.SHIPPING

    def test_http_error_falls_back(self):
        session = MagicMock()
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401")
        session.post.return_value = response

        assert remote_classifier(session).classify("a", "b").source == TriageSource.ERROR_FALLBACK


class TestSuggestReply:
    def test_missing_key_returns_placeholder(self):
        text = TriageClassifier(api_key=None).suggest_reply("s", "b")
        assert is_unavailable(text)
        assert "OPENAI_API_KEY" in text

    def test_failure_returns_placeholder(self):
        session = MagicMock()
        session.post.side_effect = requests.Timeout("timed out")
        assert is_unavailable(remote_classifier(session).suggest_reply("s", "b", "bug"))

    def test_success_returns_text(self):
        session = MagicMock()
        session.post.return_value = completion("  We are on it.  ")
        assert remote_classifier(session).suggest_reply("s", "b") == "We are on it."


class TestPing:
    def test_without_key(self):
        result = TriageClassifier(api_key=None).ping()
        assert result.ok is False
        assert "OPENAI_API_KEY" in result.reason

    def test_successful_round_trip(self):
        session = MagicMock()
        session.post.return_value = completion(" OK ")
        result = remote_classifier(session).ping()

        assert result.ok is True
        assert result.text == "OK"

    def test_failure_carries_reason(self):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        result = remote_classifier(session).ping()

        assert result.ok is False
        assert result.reason == "refused"
