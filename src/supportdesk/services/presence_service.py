"""Tracks which agents currently have a ticket open."""

from __future__ import annotations

from typing import List, Optional

from supportdesk.utils.cache_service import ExpiringCache


class PresenceTracker:
    """Heartbeat-based viewer list; a viewer lapses ``ttl_seconds`` after its last beat."""

    def __init__(self, ttl_seconds: int = 30, cache: Optional[ExpiringCache] = None):
        self.viewers_cache = cache or ExpiringCache(ttl_seconds=ttl_seconds)

    def heartbeat(self, ticket_id: int, agent_id: str = "agent") -> None:
        self.viewers_cache.set((ticket_id, agent_id or "agent"), True)

    def leave(self, ticket_id: int, agent_id: str = "agent") -> None:
        self.viewers_cache.delete((ticket_id, agent_id or "agent"))

    def viewers(self, ticket_id: int) -> List[str]:
        return sorted(agent for tid, agent in self.viewers_cache.keys() if tid == ticket_id)
