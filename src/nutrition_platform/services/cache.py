"""TTL cache for search results."""

import time
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Protocol


class Cache(Protocol):
    """Cache interface for simple key-value data."""

    def get(self, key: Hashable) -> object | None:
        """Return a cached value if present and not expired."""

    def set(self, key: Hashable, value: object, ttl_seconds: float) -> None:
        """Store a cached value with a TTL in seconds."""


@dataclass
class _CacheEntry:
    value: object
    expires_at: float


@dataclass
class TtlCache(Cache):
    """In-memory cache keyed by any hashable, with a bounded size."""

    max_entries: int = 256
    clock: Callable[[], float] = time.monotonic
    _entries: dict[Hashable, _CacheEntry] = field(default_factory=dict)

    def get(self, key: Hashable) -> object | None:
        """Return a cached value if it hasn't expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return None
        return entry.value

    def set(self, key: Hashable, value: object, ttl_seconds: float) -> None:
        """Store a cached value, evicting the oldest entry when full."""
        self._entries.pop(key, None)
        if len(self._entries) >= self.max_entries:
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)
        self._entries[key] = _CacheEntry(
            value=value, expires_at=self.clock() + ttl_seconds
        )

    def clear(self) -> None:
        """Drop every cached value."""
        self._entries.clear()
