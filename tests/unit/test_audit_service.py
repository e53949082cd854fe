"""AuditTrail tests."""

from unittest.mock import MagicMock

from supportdesk.models.ticket import Requester, TicketCreateRequest
from supportdesk.services.audit_service import AuditTrail
from supportdesk.services.ticket_service import TicketStore
from supportdesk.utils.error_handling import StorageError


class TestAuditTrail:
    def test_events_newest_first_with_decoded_payload(self, audit, clock):
        audit.record("create", ticket_id=1, actor_type="customer", actor="a@example.com")
        clock.advance(minutes=1)
        audit.record("tag", ticket_id=1, actor_type="agent", payload={"tag": "vip"})
        audit.record("tag", ticket_id=2, payload={"tag": "other"})

        events = audit.list_for_ticket(1)
        assert [e.action for e in events] == ["tag", "create"]
        assert events[0].payload == {"tag": "vip"}
        assert events[1].payload is None

    def test_failed_write_does_not_raise(self, clock):
        repository = MagicMock()
        repository.insert.side_effect = StorageError()

        AuditTrail(repository, clock=clock).record("create", ticket_id=1)

    def test_audit_failure_does_not_break_ticket_creation(self, repository, classifier, clock):
        broken = MagicMock()
        broken.insert.side_effect = RuntimeError("disk full")
        store = TicketStore(
            repository, classifier, audit=AuditTrail(broken, clock=clock), clock=clock
        )

        ticket = store.create_ticket(
            TicketCreateRequest(subject="Hi", body="Hello", requester=Requester(email="a@example.com"))
        )
        assert store.get_ticket(ticket.id).subject == "Hi"
