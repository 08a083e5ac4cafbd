# src/storage/sample_catalog.py

"""Bundled sample catalog shown when no live or cached data exists."""

import json
import logging
from pathlib import Path

from src.config.settings import Settings
from src.models.product import Product

logger = logging.getLogger("feedrank.storage")

SAMPLE_SOURCE = "sample"


def load_sample_products(path: Path | None = None) -> list[Product]:
    """Read the sample catalog, tagging every record ``source="sample"``.

    A missing or unreadable file yields an empty list so the caller
    falls through to its plain error path.
    """
    catalog_path = path or Settings.SAMPLE_CATALOG_PATH
    try:
        with open(catalog_path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Sample catalog %s unavailable: %s", catalog_path, exc)
        return []
    if not isinstance(raw, list):
        logger.warning("Sample catalog %s is not a JSON list", catalog_path)
        return []

    products = [
        Product.from_dict(item, source=SAMPLE_SOURCE)
        for item in raw
        if isinstance(item, dict)
    ]
    logger.debug("Loaded %d sample products from %s", len(products), catalog_path)
    return products
