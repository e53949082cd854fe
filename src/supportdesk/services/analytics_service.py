"""
Analytics aggregation over the ticket store.

Stateless and read-only: every call queries the database again, so the
figures are as of read time and tolerate concurrent writes without locking.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional

from supportdesk.models.analytics import AnalyticsSummary, DailyCount, StatusCount
from supportdesk.models.ticket import AuthorType
from supportdesk.repositories.sql_repo import SqlRepository
from supportdesk.utils.clock import Clock, from_iso, to_iso, utc_now
from supportdesk.utils.logging_config import get_logger

logger = get_logger(__name__)

WINDOW_DAYS = 7


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place (4.45 -> 4.5)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class AnalyticsAggregator:
    """Dashboard figures: volume, status mix, CSAT and first-response time."""

    def __init__(self, repository: SqlRepository, clock: Clock = utc_now):
        self.repository = repository
        self.clock = clock

    def total(self) -> int:
        return int(self.repository.scalar("SELECT COUNT(*) FROM tickets") or 0)

    def by_status(self) -> List[StatusCount]:
        """Counts per status present, largest first; ties ordered by status name."""
        rows = self.repository.fetch_all(
            "SELECT status, COUNT(*) AS c FROM tickets GROUP BY status"
        )
        counts = [StatusCount(status=r["status"], count=int(r["c"])) for r in rows]
        return sorted(counts, key=lambda item: (-item.count, item.status))

    def last_7_days(self) -> List[DailyCount]:
        """Tickets created per UTC calendar day, oldest first, today included."""
        today = self.clock().astimezone(timezone.utc).date()
        days = [today - timedelta(days=offset) for offset in range(WINDOW_DAYS - 1, -1, -1)]
        window_start = datetime.combine(days[0], time.min, tzinfo=timezone.utc)
        window_end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=timezone.utc)

        rows = self.repository.fetch_all(
            "SELECT created_at FROM tickets WHERE created_at >= :start AND created_at < :end",
            {"start": to_iso(window_start), "end": to_iso(window_end)},
        )
        buckets: Dict = {day: 0 for day in days}
        for row in rows:
            day = from_iso(row["created_at"]).astimezone(timezone.utc).date()
            if day in buckets:
                buckets[day] += 1
        return [DailyCount(day=day, count=buckets[day]) for day in days]

    def avg_csat(self) -> Optional[float]:
        """Mean rating across all tickets, or None when nobody has rated."""
        value = self.repository.scalar("SELECT AVG(rating) FROM csat")
        if value is None:
            return None
        return round_one_decimal(float(value))

    def avg_first_response_minutes(self) -> Optional[float]:
        """
        Mean minutes from ticket creation to the first agent message.

        Tickets nobody has answered are left out entirely, as are tickets whose
        first agent message predates the ticket (clock skew or bad imports).
        """
        rows = self.repository.fetch_all(
            """
            SELECT t.id AS id, t.created_at AS ticket_created, MIN(m.created_at) AS first_agent
            FROM tickets t
            JOIN messages m ON m.ticket_id = t.id AND m.author_type = :agent
            GROUP BY t.id, t.created_at
            """,
            {"agent": AuthorType.AGENT.value},
        )
        elapsed: List[float] = []
        for row in rows:
            minutes = (
                from_iso(row["first_agent"]) - from_iso(row["ticket_created"])
            ).total_seconds() / 60
            if minutes < 0:
                logger.warning("Skipping negative first response", extra={"ticket_id": row["id"]})
                continue
            elapsed.append(minutes)

        if not elapsed:
            return None
        return round_one_decimal(sum(elapsed) / len(elapsed))

    def summary(self) -> AnalyticsSummary:
        return AnalyticsSummary(
            total=self.total(),
            by_status=self.by_status(),
            last_7_days=self.last_7_days(),
            avg_csat=self.avg_csat(),
            avg_first_response_minutes=self.avg_first_response_minutes(),
        )
