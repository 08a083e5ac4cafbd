# src/feeds/skimlinks_feed.py

"""Feed adapter for the Skimlinks Product API (static bearer key)."""

from collections.abc import Mapping
from typing import Any

from src.feeds.base_feed import (
    BaseFeed,
    dig,
    first_present,
    stock_flag,
    to_float,
    to_str,
    to_str_list,
)
from src.models.errors import ConfigError
from src.models.product import Product, normalize_gender


class SkimlinksFeed(BaseFeed):
    """Search the Skimlinks product catalogue.

    Authentication is a static API key sent as a bearer token.  The
    response is ``{"products": [...]}``; prices come either as a bare
    number or as ``{"amount": ..., "currency": ...}``.
    """

    SEARCH_URL = "https://product-api.skimlinks.com/search"
    IN_STOCK_MARKER = "in_stock"

    def __init__(self, api_key: str | None = None) -> None:
        super().__init__("skimlinks")
        self.api_key = (
            api_key
            if api_key is not None
            else self.settings.SKIMLINKS_PRODUCT_API_KEY
        )

    def _check_config(self) -> None:
        if not self.api_key:
            raise ConfigError(
                self.source_name, "Missing SKIMLINKS_PRODUCT_API_KEY"
            )

    def _fetch_items(self, query: str, page: int) -> list[Any]:
        resp = self._request(
            "GET",
            self.SEARCH_URL,
            headers={
                **self.settings.DEFAULT_HEADERS,
                "Authorization": f"Bearer {self.api_key}",
            },
            params={
                "query": query,
                "page": str(page),
                "per_page": str(self.settings.PER_PAGE),
            },
        )
        data = self._json(resp)
        items = data.get("products")
        return items if isinstance(items, list) else []

    def _parse_item(self, raw: Mapping[str, Any]) -> Product:
        url = to_str(raw.get("url"))
        price = raw.get("price")
        if isinstance(price, Mapping):
            price = price.get("amount")

        category_path = raw.get("categoryPath")
        product_type = (
            to_str(category_path[-1])
            if isinstance(category_path, list) and category_path
            else to_str(raw.get("category"))
        )

        return Product(
            id=to_str(first_present(raw, "productId", "id", "sku")) or url or "",
            name=to_str(first_present(raw, "title", "name")),
            brand=to_str(raw.get("brand")),
            product_type=product_type,
            price=to_float(price),
            gender=normalize_gender(raw.get("gender")) or "Unisex",
            palette=to_str(raw.get("palette")),
            body=to_str_list(raw.get("body")),
            sizes=to_str_list(raw.get("sizes")),
            materials=to_str_list(raw.get("materials")),
            image=to_str(
                dig(raw, "images", 0, "url") or raw.get("imageUrl")
            ),
            url=url,
            rating=to_float(raw.get("rating")),
            in_stock=stock_flag(
                raw.get("availability"), self.IN_STOCK_MARKER, True
            ),
            source=self.source_name,
        )
