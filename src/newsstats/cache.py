"""In-memory response cache keyed by query identifier."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable

from newsstats.catalog import QueryId


@dataclass(frozen=True)
class CacheEntry:
    """A cached SPARQL result and the instant it was fetched."""

    data: dict[str, Any]
    timestamp: float


class ResponseCache:
    """One entry per query id, kept for the lifetime of the process.

    Entries are only replaced, never expired on read; freshness is decided
    by the caller through :meth:`is_fresh`.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: dict[QueryId, CacheEntry] = {}
        self._clock = clock

    def now(self) -> float:
        return self._clock()

    def get(self, query_id: QueryId) -> CacheEntry | None:
        return self._store.get(query_id)

    def put(self, query_id: QueryId, data: dict[str, Any]) -> CacheEntry:
        entry = CacheEntry(data=data, timestamp=self._clock())
        self._store[query_id] = entry
        return entry

    def is_fresh(self, entry: CacheEntry, max_age: float) -> bool:
        """True while *entry* is younger than *max_age* seconds."""
        return self._clock() - entry.timestamp < max_age

    def invalidate(self, query_id: QueryId | None = None) -> None:
        """Drop the entry for *query_id*, or every entry when ``None``."""
        if query_id is None:
            self._store.clear()
        else:
            self._store.pop(query_id, None)

    def __len__(self) -> int:
        return len(self._store)
