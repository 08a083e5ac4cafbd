# src/feeds/amazon_feed.py

"""Feed adapter for the Amazon Product Advertising API 5 (signed requests)."""

import json
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from src.feeds.base_feed import BaseFeed, dig, stock_flag, to_float, to_str
from src.feeds.request_signer import RequestSigner
from src.models.errors import AuthError, ConfigError, UpstreamError
from src.models.product import Product


class AmazonFeed(BaseFeed):
    """Search Amazon via PA-API 5 ``SearchItems``.

    Each request body is signed with AWS Signature V4 using the
    associate's access and secret keys.
    """

    SERVICE = "ProductAdvertisingAPI"
    PATH = "/paapi5/searchitems"
    TARGET = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems"
    MARKETPLACE = "www.amazon.com"
    IN_STOCK_MARKER = "in stock"
    RESOURCES: list[str] = [
        "Images.Primary.Large",
        "ItemInfo.Title",
        "ItemInfo.ByLineInfo",
        "Offers.Listings.Price",
        "Offers.Listings.Availability",
        "BrowseNodeInfo.BrowseNodes",
    ]

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        partner_tag: str | None = None,
        region: str | None = None,
        host: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__("amazon")
        s = self.settings
        self.partner_tag = (
            partner_tag if partner_tag is not None else s.AMAZON_PAAPI_PARTNER_TAG
        )
        self.host = host or s.AMAZON_PAAPI_HOST
        self.signer = RequestSigner(
            access_key=(
                access_key
                if access_key is not None
                else s.AMAZON_PAAPI_ACCESS_KEY
            ),
            secret_key=(
                secret_key
                if secret_key is not None
                else s.AMAZON_PAAPI_SECRET_KEY
            ),
            region=region or s.AMAZON_PAAPI_REGION,
            service=self.SERVICE,
            host=self.host,
            clock=clock,
        )

    @property
    def endpoint(self) -> str:
        return f"https://{self.host}{self.PATH}"

    def _check_config(self) -> None:
        missing = [
            name
            for name, value in (
                ("AMAZON_PAAPI_ACCESS_KEY", self.signer.access_key),
                ("AMAZON_PAAPI_SECRET_KEY", self.signer.secret_key),
                ("AMAZON_PAAPI_PARTNER_TAG", self.partner_tag),
            )
            if not value
        ]
        if missing:
            raise ConfigError(
                self.source_name, f"Missing {', '.join(missing)}"
            )

    def build_payload(self, query: str, page: int) -> str:
        """Serialise the ``SearchItems`` body exactly as it is signed."""
        return json.dumps(
            {
                "Keywords": query,
                "PartnerTag": self.partner_tag,
                "PartnerType": "Associates",
                "Marketplace": self.MARKETPLACE,
                "ItemCount": self.settings.AMAZON_ITEM_COUNT,
                "ItemPage": page,
                "Resources": self.RESOURCES,
            },
            separators=(",", ":"),
        )

    def _fetch_items(self, query: str, page: int) -> list[Any]:
        body = self.build_payload(query, page)
        try:
            headers = self.signer.sign(
                {
                    "content-encoding": "amz-1.0",
                    "x-amz-target": self.TARGET,
                },
                body,
                method="POST",
                path=self.PATH,
            )
        except ConfigError:
            raise
        except Exception as exc:
            raise AuthError(
                self.source_name, f"Request signing failed: {exc}"
            ) from exc

        try:
            resp = self._request(
                "POST", self.endpoint, headers=headers, data=body
            )
        except UpstreamError as exc:
            # PA-API reports an empty search as 404 with code NoResults
            if exc.http_status == 404 and "NoResults" in exc.message:
                self.logger.info(
                    "[%s] No results for '%s'", self.source_name, query
                )
                return []
            raise
        data = self._json(resp)
        items = dig(data, "SearchResult", "Items")
        return items if isinstance(items, list) else []

    def _parse_item(self, raw: Mapping[str, Any]) -> Product:
        listing = dig(raw, "Offers", "Listings", 0)
        url = to_str(raw.get("DetailPageURL"))
        return Product(
            id=to_str(raw.get("ASIN")) or url or "",
            name=to_str(dig(raw, "ItemInfo", "Title", "DisplayValue")),
            brand=to_str(
                dig(raw, "ItemInfo", "ByLineInfo", "Brand", "DisplayValue")
            ),
            product_type=to_str(
                dig(raw, "BrowseNodeInfo", "BrowseNodes", 0, "DisplayName")
            ),
            price=to_float(dig(listing, "Price", "Amount")) or None,
            gender="Unisex",
            image=to_str(dig(raw, "Images", "Primary", "Large", "URL")),
            url=url,
            in_stock=stock_flag(
                dig(listing, "Availability", "Message"),
                self.IN_STOCK_MARKER,
                False,
            ),
            source=self.source_name,
        )
