# src/storage/query_cache.py

"""In-memory cache of merged feed results with fresh and stale windows."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from src.config.settings import Settings
from src.models.product import Product

logger = logging.getLogger("feedrank.cache")


@dataclass
class CacheEntry:
    """Merged, deduplicated results for one query, page and source set."""

    query: str
    page: int
    source_ids: frozenset[str]
    results: list[Product]
    timestamp: float


class QueryCache:
    """Keeps merged results in memory for a short freshness window.

    Entries younger than ``fresh_ttl`` are served in place of a new
    aggregation cycle.  Entries younger than ``stale_ttl`` are only
    handed out on request, when every feed has just failed.  Nothing
    is persisted.
    """

    def __init__(
        self,
        fresh_ttl: float | None = None,
        stale_ttl: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[tuple[str, int, frozenset[str]], CacheEntry] = {}
        self.fresh_ttl = (
            Settings.CACHE_FRESH_TTL if fresh_ttl is None else fresh_ttl
        )
        self.stale_ttl = (
            Settings.CACHE_STALE_TTL if stale_ttl is None else stale_ttl
        )
        self._clock = clock

    @staticmethod
    def _key(
        query: str, page: int, source_ids: frozenset[str]
    ) -> tuple[str, int, frozenset[str]]:
        return " ".join(query.lower().split()), page, source_ids

    def get(
        self,
        query: str,
        page: int,
        source_ids: frozenset[str],
        allow_stale: bool = False,
    ) -> list[Product] | None:
        """Return cached results, or ``None`` on a miss.

        With ``allow_stale`` an entry past its freshness window but
        inside the stale window still counts as a hit.
        """
        now = self._clock()
        self._evict_expired(now)

        entry = self._entries.get(self._key(query, page, source_ids))
        if entry is None:
            return None
        age = now - entry.timestamp
        if age < self.fresh_ttl or allow_stale:
            logger.info(
                "Cache %s hit for '%s' page %d (age %.0fs)",
                "fresh" if age < self.fresh_ttl else "stale",
                query,
                page,
                age,
            )
            return list(entry.results)
        return None

    def store(
        self,
        query: str,
        page: int,
        source_ids: frozenset[str],
        results: list[Product],
    ) -> None:
        """Store merged results, replacing any entry for the same key."""
        key = self._key(query, page, source_ids)
        self._entries[key] = CacheEntry(
            query=query,
            page=page,
            source_ids=source_ids,
            results=list(results),
            timestamp=self._clock(),
        )
        logger.info(
            "Cached %d results for '%s' page %d", len(results), query, page
        )

    def clear(self) -> int:
        """Purge all entries; returns how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        logger.info("Cache manually purged (%d entries removed)", count)
        return count

    def __len__(self) -> int:
        return len(self._entries)

    def _evict_expired(self, now: float) -> None:
        """Drop entries older than the stale window."""
        expired = [
            key
            for key, entry in self._entries.items()
            if now - entry.timestamp >= self.stale_ttl
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
