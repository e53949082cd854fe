"""
In-memory expiring cache.

Process-scoped key/value store for short-lived state such as magic-link
tokens and presence heartbeats. The clock is injected so expiry can be driven
deterministically, and expired entries are dropped either lazily on read or
by an explicit ``sweep()``.
"""

from collections import OrderedDict
from datetime import datetime, timedelta
from threading import Lock
from typing import Any, Hashable, List, Optional

from supportdesk.utils.clock import Clock, utc_now


class ExpiringCache:
    """Thread-safe TTL cache with LRU eviction once ``max_size`` is reached."""

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_size: int = 10_000,
        clock: Clock = utc_now,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._cache: "OrderedDict[Hashable, tuple[Any, datetime]]" = OrderedDict()
        self._lock = Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache if it exists and has not expired."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            self._cache.move_to_end(key)
            return entry[0]

    def set(self, key: Hashable, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store a value; re-setting a key refreshes its expiry."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (value, self._clock() + timedelta(seconds=ttl))

            while len(self._cache) > self.max_size:
                self._cache.popitem(last=False)

    def pop(self, key: Hashable) -> Optional[Any]:
        """Remove a key and return its value, or None if missing or expired."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            del self._cache[key]
            return entry[0]

    def delete(self, key: Hashable) -> bool:
        """Delete key from cache."""
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    def keys(self) -> List[Hashable]:
        """Keys of all live entries, oldest first."""
        self.sweep()
        with self._lock:
            return list(self._cache.keys())

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, expires_at) in self._cache.items() if expires_at <= now]
            for key in expired:
                del self._cache[key]
            return len(expired)

    def clear(self) -> None:
        """Clear all cache entries."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            return {
                "size": len(self._cache),
                "max_size": self.max_size,
                "ttl_seconds": self.ttl_seconds,
            }

    def _live_entry(self, key: Hashable) -> Optional[tuple]:
        # Caller holds the lock.
        entry = self._cache.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._cache[key]
            return None
        return entry
