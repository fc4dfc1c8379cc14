"""Time-boxed cache for PR list queries.

One entry per query kind. An entry is fresh while ``now - timestamp < ttl``.
Stale entries are kept around so readers can fall back to them when a fetch
fails.

Writes are ordered by ticket: a fetch takes a ticket with ``begin_fetch``
before going to the network and passes it to ``store``. A response whose
ticket is older than the last stored one is discarded, so a slow request
cannot overwrite newer data.
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


class CacheKind(str, Enum):
    """Cached query types."""

    AUTHORED = "authored"
    REVIEW_REQUESTED = "review_requested"


@dataclass(frozen=True)
class CacheEntry:
    """Cached query result and the time it was stored."""

    data: tuple[Any, ...]
    timestamp: float

    def age(self, now: float) -> float:
        return now - self.timestamp


class QueryCache:
    """Per-kind result cache with TTL, stale fallback, and ordered writes."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize query cache.

        Args:
            ttl: Freshness window in seconds
            clock: Source of the current epoch time
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKind, CacheEntry] = {}
        self._next_ticket = 0
        self._stored_ticket: dict[CacheKind, int] = {}

    def get_fresh(self, kind: CacheKind) -> list[Any] | None:
        """Return cached data if present and younger than the TTL."""
        entry = self._entries.get(kind)
        if entry is None:
            logger.debug(f"No cache for {kind.value}")
            return None

        age = entry.age(self._clock())
        if age < self.ttl:
            logger.debug(
                f"Using cached {kind.value} ({len(entry.data)} PRs, age: {int(age)}s)"
            )
            return list(entry.data)

        logger.debug(f"Cache expired for {kind.value} (age: {int(age)}s)")
        return None

    def get_stale(self, kind: CacheKind) -> list[Any] | None:
        """Return cached data regardless of age."""
        entry = self._entries.get(kind)
        return list(entry.data) if entry is not None else None

    def begin_fetch(self) -> int:
        """Reserve a write ticket for a fetch that is about to start."""
        self._next_ticket += 1
        return self._next_ticket

    def store(self, kind: CacheKind, data: Sequence[Any], ticket: int | None = None) -> bool:
        """Replace the entry for ``kind``.

        Returns:
            False if the write was discarded because a newer fetch already
            stored its result
        """
        if ticket is not None:
            if ticket < self._stored_ticket.get(kind, 0):
                logger.debug(
                    f"Discarding out-of-order {kind.value} response "
                    f"(ticket {ticket} < {self._stored_ticket[kind]})"
                )
                return False
            self._stored_ticket[kind] = ticket

        self._entries[kind] = CacheEntry(tuple(data), self._clock())
        return True

    def update(self, kind: CacheKind, transform: Callable[[list[Any]], list[Any]]) -> bool:
        """Rewrite an entry's data in place, keeping its timestamp.

        Returns:
            False if there was no entry to update
        """
        entry = self._entries.get(kind)
        if entry is None:
            return False
        self._entries[kind] = CacheEntry(tuple(transform(list(entry.data))), entry.timestamp)
        return True

    def expire(self, kind: CacheKind) -> None:
        """Mark an entry stale without dropping its data."""
        entry = self._entries.get(kind)
        if entry is not None:
            self._entries[kind] = CacheEntry(entry.data, self._clock() - self.ttl)

    def invalidate(self, kind: CacheKind | None = None) -> int:
        """Drop one entry, or all entries when ``kind`` is None.

        Returns:
            Number of entries removed
        """
        if kind is None:
            count = len(self._entries)
            self._entries.clear()
            return count
        return 1 if self._entries.pop(kind, None) is not None else 0

    def kinds(self) -> list[CacheKind]:
        return list(self._entries)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        now = self._clock()
        return {
            "ttl": self.ttl,
            "entries": {
                kind.value: {"size": len(entry.data), "age": entry.age(now)}
                for kind, entry in self._entries.items()
            },
        }
