"""
TicketStore tests against an in-memory SQLite database.

Run with: pytest tests/unit/test_ticket_service.py -v
"""

from datetime import timedelta

import pytest

from supportdesk.models.ticket import (
    AuthorType,
    Category,
    Priority,
    Requester,
    Sentiment,
    TicketCreateRequest,
    TicketStatus,
)
from supportdesk.services.ticket_service import DEFAULT_MACROS, sla_due_at
from supportdesk.utils.error_handling import ForbiddenError, NotFoundError, ValidationError


def make_request(subject="Order late", body="Where is my package?", email="ann@example.com", **kwargs):
    return TicketCreateRequest(
        subject=subject, body=body, requester=Requester(email=email, name="Ann"), **kwargs
    )


class TestCreateTicket:
    """Ticket creation with offline triage."""

    def test_urgent_shipping_ticket_gets_high_priority_and_short_sla(self, store, clock):
        ticket = store.create_ticket(make_request(body="My order is late, very urgent"))

        assert ticket.category == Category.SHIPPING
        assert ticket.priority == Priority.HIGH
        assert ticket.status == TicketStatus.NEW
        assert ticket.sentiment == Sentiment.NEUTRAL
        assert ticket.created_at == clock()
        assert ticket.sla_due_at - ticket.created_at == timedelta(hours=12)

    def test_normal_priority_gets_24h_sla(self, store):
        ticket = store.create_ticket(make_request(subject="Hello", body="Just saying hi"))

        assert ticket.priority == Priority.NORMAL
        assert ticket.category == Category.OTHER
        assert ticket.sla_due_at - ticket.created_at == timedelta(hours=24)

    def test_explicit_priority_wins_over_keywords(self, store):
        ticket = store.create_ticket(make_request(priority=Priority.HIGH, body="no rush"))
        assert ticket.priority == Priority.HIGH

    def test_originating_message_shares_creation_timestamp(self, store):
        ticket = store.create_ticket(make_request())
        thread = store.list_messages(ticket.id)

        assert len(thread) == 1
        assert thread[0].author_type == AuthorType.CUSTOMER
        assert thread[0].body == ticket.body
        assert thread[0].created_at == ticket.created_at

    def test_creation_is_audited(self, store, audit):
        ticket = store.create_ticket(make_request())
        events = audit.list_for_ticket(ticket.id)

        assert [e.action for e in events] == ["create"]
        assert events[0].actor == "ann@example.com"


class TestSlaDueAt:
    def test_exact_offsets(self, clock):
        now = clock()
        assert sla_due_at(now, Priority.HIGH) == now + timedelta(hours=12)
        assert sla_due_at(now, Priority.NORMAL) == now + timedelta(hours=24)


class TestReads:
    def test_list_tickets_orders_by_most_recent_update(self, store, clock):
        first = store.create_ticket(make_request(subject="First"))
        clock.advance(minutes=1)
        second = store.create_ticket(make_request(subject="Second"))
        clock.advance(minutes=1)
        store.append_message(first.id, AuthorType.AGENT, "On it")

        assert [t.id for t in store.list_tickets()] == [first.id, second.id]

    def test_get_missing_ticket_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get_ticket(999)

    def test_list_messages_for_missing_ticket_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.list_messages(999)

    def test_macros_are_static(self, store):
        assert store.list_macros() == list(DEFAULT_MACROS)


class TestPublicAccess:
    """Requester-email ownership checks."""

    def test_owner_sees_ticket_case_insensitively(self, store):
        ticket = store.create_ticket(make_request(email="Ann@Example.com"))
        view = store.get_public_ticket(ticket.id, "  ann@example.COM ")

        assert view.ticket.id == ticket.id
        assert len(view.messages) == 1

    def test_other_email_is_forbidden(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ForbiddenError):
            store.get_public_ticket(ticket.id, "bob@example.com")

    def test_missing_ticket_is_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.get_public_ticket(42, "ann@example.com")

    def test_blank_email_is_rejected(self, store):
        with pytest.raises(ValidationError):
            store.list_by_requester("   ")

    def test_list_by_requester_filters_on_owner(self, store):
        mine = store.create_ticket(make_request())
        store.create_ticket(make_request(email="bob@example.com"))

        assert [t.id for t in store.list_by_requester("ANN@example.com")] == [mine.id]

    def test_public_reply_from_non_owner_is_forbidden(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ForbiddenError):
            store.append_public_message(ticket.id, "bob@example.com", "hi")
        assert len(store.list_messages(ticket.id)) == 1

    def test_public_reply_is_customer_authored(self, store, clock):
        ticket = store.create_ticket(make_request())
        clock.advance(minutes=5)
        message = store.append_public_message(ticket.id, "ann@example.com", "  Any news?  ")

        assert message.author_type == AuthorType.CUSTOMER
        assert message.body == "Any news?"
        assert store.get_ticket(ticket.id).updated_at == clock()


class TestMutations:
    def test_reply_bumps_updated_at(self, store, clock):
        ticket = store.create_ticket(make_request())
        clock.advance(minutes=10)
        store.append_message(ticket.id, "agent", "Looking into it")

        assert store.get_ticket(ticket.id).updated_at == ticket.created_at + timedelta(minutes=10)

    def test_empty_reply_is_rejected(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.append_message(ticket.id, AuthorType.AGENT, "   ")

    def test_unknown_author_type_is_rejected(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.append_message(ticket.id, "robot", "beep")

    def test_message_timestamps_never_go_backwards(self, store, clock):
        ticket = store.create_ticket(make_request())
        clock.advance(minutes=5)
        store.append_message(ticket.id, AuthorType.AGENT, "first")
        clock.advance(minutes=-30)
        late = store.append_message(ticket.id, AuthorType.AGENT, "second")

        thread = store.list_messages(ticket.id)
        assert [m.body for m in thread][-2:] == ["first", "second"]
        assert late.created_at == thread[-2].created_at

    def test_set_status_any_transition(self, store, clock):
        ticket = store.create_ticket(make_request())
        clock.advance(minutes=1)
        solved = store.set_status(ticket.id, "solved")
        reopened = store.set_status(ticket.id, TicketStatus.NEW)

        assert solved.status == TicketStatus.SOLVED
        assert reopened.status == TicketStatus.NEW
        assert reopened.updated_at == clock()

    def test_set_status_rejects_unknown_value(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.set_status(ticket.id, "closed")

    def test_status_change_audit_records_from_and_to(self, store, audit):
        ticket = store.create_ticket(make_request())
        store.set_status(ticket.id, "open")

        latest = audit.list_for_ticket(ticket.id)[0]
        assert latest.action == "status"
        assert latest.payload == {"from": "new", "to": "open"}

    def test_set_status_on_missing_ticket(self, store):
        with pytest.raises(NotFoundError):
            store.set_status(404, "open")


class TestTags:
    def test_tags_are_trimmed_and_deduplicated(self, store):
        ticket = store.create_ticket(make_request())
        store.add_tag(ticket.id, "vip")
        store.add_tag(ticket.id, "  vip ")
        updated = store.add_tag(ticket.id, "vip")

        assert updated.tags == ["vip"]

    def test_readding_tag_still_bumps_updated_at(self, store, clock):
        ticket = store.create_ticket(make_request())
        store.add_tag(ticket.id, "vip")
        clock.advance(hours=1)
        updated = store.add_tag(ticket.id, "vip")

        assert updated.updated_at == clock()

    def test_blank_tag_is_rejected(self, store):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.add_tag(ticket.id, "  ")

    def test_list_all_tags_is_distinct_and_sorted(self, store):
        a = store.create_ticket(make_request())
        b = store.create_ticket(make_request())
        store.add_tag(a.id, "refund")
        store.add_tag(b.id, "refund")
        store.add_tag(b.id, "angry")

        assert store.list_all_tags() == ["angry", "refund"]
        assert [t.tags for t in store.list_tickets()] == [["angry", "refund"], ["refund"]]


class TestCsat:
    def test_out_of_range_rating_stores_nothing(self, store, repository):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.record_csat(ticket.id, 6, "great")
        assert repository.scalar("SELECT COUNT(*) FROM csat") == 0

    @pytest.mark.parametrize("rating", [0, True, 4.5, "5"])
    def test_non_integer_or_low_ratings_rejected(self, store, rating):
        ticket = store.create_ticket(make_request())
        with pytest.raises(ValidationError):
            store.record_csat(ticket.id, rating)

    def test_rating_does_not_touch_ticket(self, store, clock):
        ticket = store.create_ticket(make_request())
        clock.advance(hours=2)
        rating = store.record_csat(ticket.id, 5, "  great ")

        assert rating.comment == "great"
        assert store.get_ticket(ticket.id).updated_at == ticket.updated_at

    def test_rating_missing_ticket(self, store):
        with pytest.raises(NotFoundError):
            store.record_csat(77, 4)


class TestSuggestions:
    """AI reply suggestions on read."""

    def test_placeholder_is_returned_but_not_cached(self, store, repository):
        ticket = store.create_ticket(make_request())
        result = store.ensure_suggestion(ticket.id)

        assert result.ai_suggestion.startswith("[AI unavailable:")
        stored = repository.scalar("SELECT ai_suggestion FROM tickets WHERE id = :id", {"id": ticket.id})
        assert stored is None

    def test_real_suggestion_is_cached_without_bumping_updated_at(self, store, classifier, monkeypatch, clock):
        calls = []

        def fake_suggest(subject, body, category=None):
            calls.append(subject)
            return "Thanks, we are on it."

        monkeypatch.setattr(classifier, "suggest_reply", fake_suggest)
        ticket = store.create_ticket(make_request())
        clock.advance(minutes=3)

        assert store.ensure_suggestion(ticket.id).ai_suggestion == "Thanks, we are on it."
        again = store.ensure_suggestion(ticket.id)
        assert again.ai_suggestion == "Thanks, we are on it."
        assert again.updated_at == ticket.updated_at
        assert len(calls) == 1

        store.ensure_suggestion(ticket.id, refresh=True)
        assert len(calls) == 2
