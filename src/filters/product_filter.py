# src/filters/product_filter.py

"""Structured preference filtering of merged products."""

import logging

from src.models.product import Product
from src.models.query_context import QueryContext

logger = logging.getLogger("feedrank.filters")


class ProductFilter:
    """Filter products on price, gender, palette, body type and materials."""

    @staticmethod
    def matches(product: Product, context: QueryContext) -> bool:
        """Return True when *product* passes every preference predicate."""
        low, high = context.price_bounds
        if product.price is not None and not low <= product.price <= high:
            return False
        if (
            context.gender
            and product.gender is not None
            and product.gender not in (context.gender, "Unisex")
        ):
            return False
        if context.palette and product.palette != context.palette:
            return False
        if context.body and context.body not in product.body:
            return False
        return all(m in product.materials for m in context.materials)

    @staticmethod
    def apply(
        products: list[Product],
        context: QueryContext,
    ) -> tuple[list[Product], int]:
        """Keep products passing all predicates, preserving order.

        Returns the kept products and the count of excluded ones.
        """
        kept = [p for p in products if ProductFilter.matches(p, context)]
        excluded = len(products) - len(kept)
        if excluded:
            logger.debug(
                "Preference filter excluded %d of %d products",
                excluded,
                len(products),
            )
        return kept, excluded
