# src/services/aggregator.py

"""Fans a query out to every feed and merges the surviving results."""

import asyncio
import importlib
import logging
from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.feeds.base_feed import BaseFeed
from src.filters.deduplicator import ProductDeduplicator
from src.models.errors import AggregateEmptyError, FeedError, UpstreamError
from src.models.product import Product
from src.models.query_context import QueryContext
from src.services.ranking_engine import RankingEngine
from src.storage.query_cache import QueryCache
from src.storage.sample_catalog import load_sample_products

logger = logging.getLogger("feedrank.aggregator")


@dataclass
class AggregateResult:
    """Outcome of one aggregation cycle."""

    query: str
    page: int = 1
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    errors: list[FeedError] = field(
        default_factory=lambda: list[FeedError]()
    )
    advisory: AggregateEmptyError | None = None
    deduplicated_count: int = 0
    cache_hit: bool = False
    stale: bool = False
    sample: bool = False

    @property
    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]


def _load_feed_class(dotted_path: str) -> type[Any]:
    """Dynamically import a feed class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def load_feeds(
    sources: list[dict[str, str]] | None = None,
) -> list[BaseFeed]:
    """Instantiate feeds from the source registry, in declaration order."""
    registry = Settings.AVAILABLE_SOURCES if sources is None else sources
    return [_load_feed_class(src["feed"])() for src in registry]


class FeedAggregator:
    """Runs every feed concurrently and merges what comes back.

    Feed instances live as long as the aggregator, so each keeps its
    own token cache between cycles.  The order of ``feeds`` is the
    merge precedence: on a key collision the earlier feed wins.
    ``sample_products`` defaults to the bundled sample catalog when
    ``SAMPLE_FALLBACK`` is on; pass an empty list to disable it.
    """

    def __init__(
        self,
        feeds: list[BaseFeed] | None = None,
        cache: QueryCache | None = None,
        deadline: float | None = None,
        sample_products: list[Product] | None = None,
    ) -> None:
        self.settings = Settings()
        self.feeds: list[BaseFeed] = load_feeds() if feeds is None else feeds
        self.cache = cache if cache is not None else QueryCache()
        self.deadline = (
            self.settings.FEED_DEADLINE if deadline is None else deadline
        )
        if sample_products is None:
            sample_products = (
                load_sample_products() if self.settings.SAMPLE_FALLBACK else []
            )
        self.sample_products = sample_products

    @property
    def source_ids(self) -> frozenset[str]:
        return frozenset(f.source_name for f in self.feeds)

    def feed(self, source_id: str) -> BaseFeed | None:
        """Look up a configured feed by its source id."""
        for candidate in self.feeds:
            if candidate.source_name == source_id:
                return candidate
        return None

    # ── Private helpers ──────────────────────────────────

    async def _run_one(
        self, feed: BaseFeed, query: str, page: int
    ) -> list[Product]:
        """Run one feed in a worker thread under the cycle deadline."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(feed.search, query, page),
                timeout=self.deadline,
            )
        except asyncio.TimeoutError as exc:
            raise UpstreamError(
                feed.source_name,
                f"Timed out after {self.deadline:.1f}s",
            ) from exc
        except FeedError:
            raise
        except Exception as exc:
            raise UpstreamError(
                feed.source_name, f"Unexpected failure: {exc}"
            ) from exc

    async def _run_feeds(
        self, query: str, page: int
    ) -> tuple[list[Product], list[FeedError]]:
        """Dispatch all feeds and wait for every one of them to settle.

        Returns the concatenated products (feed order) and the errors.
        """
        outcomes = await asyncio.gather(
            *(self._run_one(f, query, page) for f in self.feeds),
            return_exceptions=True,
        )

        products: list[Product] = []
        errors: list[FeedError] = []
        for feed, outcome in zip(self.feeds, outcomes):
            if isinstance(outcome, list):
                products.extend(outcome)
                continue
            error = (
                outcome
                if isinstance(outcome, FeedError)
                else UpstreamError(feed.source_name, str(outcome))
            )
            errors.append(error)
            logger.error(
                "Feed %s failed for query '%s': %s",
                feed.source_name,
                query,
                error,
                exc_info=outcome,
            )
        return products, errors

    # ── Public API ───────────────────────────────────────

    async def aggregate(self, query: str, page: int = 1) -> AggregateResult:
        """Run one aggregation cycle and return merged, deduplicated products.

        Feed failures never raise: they are listed in ``errors``.  When
        every feed fails ``advisory`` carries the first failure message
        and the products are a stale cached copy, the sample catalog or
        empty, in that order of preference.  Only cycles in which every
        feed succeeded are cached.
        """
        result = AggregateResult(query=query, page=page)
        source_ids = self.source_ids

        cached = self.cache.get(query, page, source_ids)
        if cached is not None:
            result.products = cached
            result.cache_hit = True
            return result

        merged, result.errors = await self._run_feeds(query, page)
        result.products, result.deduplicated_count = (
            ProductDeduplicator.deduplicate(merged)
        )

        if self.feeds and len(result.errors) == len(self.feeds):
            result.advisory = AggregateEmptyError(str(result.errors[0]))
            logger.warning(
                "All %d feeds failed for '%s'; first error: %s",
                len(self.feeds),
                query,
                result.errors[0],
            )
            stale = self.cache.get(query, page, source_ids, allow_stale=True)
            if stale is not None:
                result.products = stale
                result.cache_hit = True
                result.stale = True
            elif self.sample_products:
                logger.info(
                    "Serving %d sample products for '%s'",
                    len(self.sample_products),
                    query,
                )
                result.products = list(self.sample_products)
                result.sample = True
            return result

        # A partial set would hide recovered feeds for the fresh window
        if not result.errors:
            self.cache.store(query, page, source_ids, result.products)
        return result

    async def search(
        self,
        context: QueryContext,
        page: int = 1,
    ) -> AggregateResult:
        """Aggregate ``context.query`` and rank the merged set."""
        result = await self.aggregate(context.query, page)
        result.products = RankingEngine.rank(result.products, context)
        return result
