# src/feeds/rakuten_feed.py

"""Feed adapter for Rakuten Advertising product search (OAuth token)."""

import base64
from collections.abc import Mapping
from typing import Any

from src.feeds.base_feed import (
    BaseFeed,
    first_present,
    to_float,
    to_str,
    to_str_list,
)
from src.feeds.token_cache import TokenCache
from src.models.errors import AuthError, ConfigError, FeedError, UpstreamError
from src.models.product import Product, normalize_gender


class RakutenFeed(BaseFeed):
    """Search Rakuten Advertising's product catalogue.

    Every search needs a bearer token from the client-credentials
    endpoint.  The token lives in this adapter's :class:`TokenCache`
    and is refetched once it has expired or the search endpoint rejects
    it with 401/403.  Product payloads vary between advertisers, so
    most fields are read from several alternative names.
    """

    TOKEN_URL = "https://api.rakutenadvertising.com/token"
    SEARCH_URL = "https://api.rakutenadvertising.com/productsearch/1.0"
    REJECTED_TOKEN_STATUSES = (401, 403)

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        super().__init__("rakuten")
        self.client_id = (
            client_id
            if client_id is not None
            else self.settings.RAKUTEN_CLIENT_ID
        )
        self.client_secret = (
            client_secret
            if client_secret is not None
            else self.settings.RAKUTEN_CLIENT_SECRET
        )
        self.token_cache = token_cache or TokenCache(
            margin=self.settings.TOKEN_EXPIRY_MARGIN
        )

    def _check_config(self) -> None:
        if not self.client_id or not self.client_secret:
            raise ConfigError(
                self.source_name,
                "Missing RAKUTEN_CLIENT_ID / RAKUTEN_CLIENT_SECRET",
            )

    def _access_token(self) -> str:
        """Return a valid bearer token, fetching one when needed."""
        cached = self.token_cache.get()
        if cached:
            return cached

        credentials = base64.b64encode(
            f"{self.client_id}:{self.client_secret}".encode("utf-8")
        ).decode("ascii")
        try:
            resp = self._request(
                "POST",
                self.TOKEN_URL,
                headers={
                    "Authorization": f"Basic {credentials}",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials"},
            )
            data = self._json(resp)
        except FeedError as exc:
            raise AuthError(
                self.source_name,
                f"Token request failed: {exc.message}",
                http_status=exc.http_status,
            ) from exc

        token = to_str(data.get("access_token"))
        if not token:
            raise AuthError(
                self.source_name, "Token response has no access_token"
            )
        ttl = to_float(data.get("expires_in"))
        self.token_cache.store(
            token, ttl if ttl else self.settings.RAKUTEN_TOKEN_TTL
        )
        self.logger.info("[%s] Acquired new access token", self.source_name)
        return token

    def _fetch_items(self, query: str, page: int) -> list[Any]:
        token = self._access_token()
        try:
            resp = self._request(
                "GET",
                self.SEARCH_URL,
                headers={
                    **self.settings.DEFAULT_HEADERS,
                    "Authorization": f"Bearer {token}",
                },
                params={
                    "keyword": query,
                    "max": str(self.settings.PER_PAGE),
                    "pagenumber": str(page),
                },
            )
        except UpstreamError as exc:
            if exc.http_status not in self.REJECTED_TOKEN_STATUSES:
                raise
            # Revoked before expiry; the next cycle fetches a new one
            self.token_cache.invalidate()
            raise AuthError(
                self.source_name,
                f"Access token rejected: {exc.message}",
                http_status=exc.http_status,
            ) from exc
        data = self._json(resp)
        items = first_present(data, "item", "products", "results")
        if isinstance(items, Mapping):
            # A single match is sometimes returned unwrapped
            return [items]
        return items if isinstance(items, list) else []

    def _parse_item(self, raw: Mapping[str, Any]) -> Product:
        url = to_str(first_present(raw, "productUrl", "linkUrl", "url"))
        product_id = to_str(
            first_present(
                raw, "sku", "advertiserProductId", "productId", "linkId"
            )
        )
        price = first_present(raw, "price", "salePrice", "retailPrice")
        if isinstance(price, Mapping):
            price = first_present(price, "value", "amount", "#text")

        return Product(
            id=product_id or url or "",
            name=to_str(first_present(raw, "productName", "name", "title")),
            brand=to_str(first_present(raw, "brandName", "brand")),
            product_type=to_str(
                first_present(raw, "categoryName", "category")
            ),
            # Zero is treated as "no price", not as free
            price=to_float(price) or None,
            gender=normalize_gender(raw.get("gender")) or "Unisex",
            sizes=to_str_list(raw.get("sizes")),
            materials=to_str_list(raw.get("materials")),
            image=to_str(
                first_present(
                    raw, "imageUrl", "largeImage", "thumbnailImage"
                )
            ),
            url=url,
            in_stock=True,
            source=self.source_name,
        )
