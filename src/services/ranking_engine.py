# src/services/ranking_engine.py

"""Filter, score and sort merged products for one query context."""

import dataclasses
import logging
from collections.abc import Callable

from src.filters.product_filter import ProductFilter
from src.filters.query_matcher import match_count, tokenize
from src.models.product import Product
from src.models.query_context import QueryContext

logger = logging.getLogger("feedrank.ranking")

TOKEN_WEIGHT = 3.0
IN_STOCK_BONUS = 1.0
OUT_OF_STOCK_PENALTY = -2.0


def score_product(product: Product, token_matches: int) -> float:
    """``3 × matched tokens + stock term + rating / 5``, unclamped."""
    stock = IN_STOCK_BONUS if product.in_stock else OUT_OF_STOCK_PENALTY
    return TOKEN_WEIGHT * token_matches + stock + (product.rating or 0) / 5


_SORT_KEYS: dict[str, Callable[[Product], float]] = {
    "price-asc": lambda p: p.price or 0,
    "price-desc": lambda p: -(p.price or 0),
    "rating": lambda p: -(p.rating or 0),
    "relevance": lambda p: -(p.score or 0),
}


class RankingEngine:
    """Pure, synchronous ranking over an in-memory product list."""

    @staticmethod
    def rank(
        products: list[Product],
        context: QueryContext,
    ) -> list[Product]:
        """Return the products that pass *context*, best first.

        Every returned product is a copy carrying a fresh ``score``.
        Sorting is stable, so ties keep their post-filter order.
        """
        if not isinstance(context, QueryContext):
            raise TypeError(
                f"context must be a QueryContext, got {type(context).__name__}"
            )

        filtered, _ = ProductFilter.apply(products, context)
        tokens = tokenize(context.query)

        scored: list[Product] = []
        for product in filtered:
            matches = match_count(product, tokens)
            if matches is None:
                continue
            scored.append(
                dataclasses.replace(
                    product, score=score_product(product, matches)
                )
            )

        ranked = sorted(scored, key=_SORT_KEYS[context.sort])
        logger.debug(
            "Ranked %d of %d products (query=%r, sort=%s)",
            len(ranked),
            len(products),
            context.query,
            context.sort,
        )
        return ranked
