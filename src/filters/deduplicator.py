# src/filters/deduplicator.py

"""Key-based product deduplication within and across feeds."""

import logging

from src.models.product import Product

logger = logging.getLogger("feedrank.filters")


class ProductDeduplicator:
    """Remove duplicate products by ``id``, falling back to ``url``."""

    @staticmethod
    def deduplicate(
        products: list[Product],
    ) -> tuple[list[Product], int]:
        """Keep the first product seen for each dedup key.

        Later products with a colliding key are dropped whole; fields
        are never merged.  Products with neither ``id`` nor ``url``
        are discarded.

        Returns the deduplicated list and the count of removed items.
        """
        if not products:
            return [], 0

        seen: set[str] = set()
        kept: list[Product] = []
        keyless = 0
        duplicates = 0

        for product in products:
            key = product.dedup_key
            if not key:
                keyless += 1
                continue
            if key in seen:
                duplicates += 1
                continue
            seen.add(key)
            kept.append(product)

        if keyless:
            logger.info(
                "Dropped %d products with neither id nor url", keyless
            )
        if duplicates:
            logger.info(
                "Deduplication removed %d duplicate products",
                duplicates,
            )

        return kept, keyless + duplicates
