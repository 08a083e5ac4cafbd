# src/feeds/base_feed.py

"""Abstract base class for all commerce feed adapters."""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.filters.deduplicator import ProductDeduplicator
from src.models.errors import ParseError, UpstreamError
from src.models.product import Product


def first_present(mapping: Any, *keys: str) -> Any:
    """Return the first value under *keys* that is not ``None`` or ``""``."""
    if not isinstance(mapping, Mapping):
        return None
    for key in keys:
        value = mapping.get(key)
        if value is not None and value != "":
            return value
    return None


def dig(data: Any, *path: str | int) -> Any:
    """Walk nested dicts/lists, returning ``None`` on any missing step."""
    current = data
    for step in path:
        if isinstance(step, int):
            if not isinstance(current, list):
                return None
            if not -len(current) <= step < len(current):
                return None
            current = current[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = current.get(step)
        if current is None:
            return None
    return current


def to_float(value: Any) -> float | None:
    """Coerce a price/rating-like value to float; junk becomes ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_str(value: Any) -> str | None:
    """Stringify scalars, trimming whitespace; empty becomes ``None``."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def to_str_list(value: Any) -> list[str]:
    """Normalise a list-ish field; anything else becomes ``[]``."""
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def stock_flag(text: Any, marker: str, default: bool | None) -> bool | None:
    """Case-insensitive substring check of availability text."""
    if text is None or text == "":
        return default
    return marker.lower() in str(text).lower()


class BaseFeed(ABC):
    """Abstract base class for all commerce feed adapters.

    Subclasses build and authenticate the upstream request in
    :meth:`_fetch_items` and translate one raw item in
    :meth:`_parse_item`.  :meth:`search` runs the shared pipeline:
    config check, fetch, defensive per-item parse, in-feed dedup.
    """

    def __init__(self, source_name: str) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(f"feedrank.{source_name}")
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    # ── Transport ────────────────────────────────────────

    def _request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        **kwargs: Any,
    ) -> curl_requests.Response:
        """Send one request; non-2xx and transport errors raise.

        Transport errors are retried up to ``MAX_RETRIES`` attempts;
        an HTTP error status is final for this cycle.
        """
        last_exc: Exception | None = None
        for attempt in range(max(self.settings.MAX_RETRIES, 1)):
            try:
                resp = self.session.request(
                    method,
                    url,
                    headers=headers,
                    timeout=self._request_timeout,
                    **kwargs,
                )
            except Exception as exc:
                last_exc = exc
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.source_name,
                    attempt + 1,
                    exc,
                )
                continue
            if 200 <= resp.status_code < 300:
                return resp
            self.logger.warning(
                "[%s] HTTP %d from %s",
                self.source_name,
                resp.status_code,
                url,
            )
            raise UpstreamError(
                self.source_name,
                _error_excerpt(resp),
                http_status=resp.status_code,
            )
        raise UpstreamError(
            self.source_name, f"Transport failure: {last_exc}"
        ) from last_exc

    def _json(self, resp: curl_requests.Response) -> dict[str, Any]:
        """Decode a JSON object body or raise :class:`ParseError`."""
        try:
            data = resp.json()
        except Exception as exc:
            raise ParseError(
                self.source_name, f"Response is not JSON: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise ParseError(
                self.source_name,
                f"Expected a JSON object, got {type(data).__name__}",
            )
        return data

    # ── Pipeline ─────────────────────────────────────────

    def search(self, query: str, page: int = 1) -> list[Product]:
        """Search this feed and return normalized, deduplicated products."""
        self._check_config()
        raw_items = self._fetch_items(query, max(int(page), 1))

        products: list[Product] = []
        for raw in raw_items:
            if not isinstance(raw, Mapping):
                self.logger.debug(
                    "[%s] Skipping non-object item: %r",
                    self.source_name,
                    raw,
                )
                continue
            try:
                product = self._parse_item(raw)
            except Exception as exc:
                self.logger.warning(
                    "[%s] Could not parse item: %s",
                    self.source_name,
                    exc,
                    exc_info=True,
                )
                continue
            products.append(product)

        kept, removed = ProductDeduplicator.deduplicate(products)
        self.logger.info(
            "[%s] '%s' page %d: %d products (%d dropped)",
            self.source_name,
            query,
            page,
            len(kept),
            removed,
        )
        return kept

    @abstractmethod
    def _check_config(self) -> None:
        """Raise :class:`ConfigError` when a credential is missing."""
        ...

    @abstractmethod
    def _fetch_items(self, query: str, page: int) -> list[Any]:
        """Call the upstream and return its raw item list."""
        ...

    @abstractmethod
    def _parse_item(self, raw: Mapping[str, Any]) -> Product:
        """Translate one raw upstream item into a :class:`Product`."""
        ...


def _error_excerpt(resp: curl_requests.Response, limit: int = 300) -> str:
    text = " ".join(str(resp.text or "").split())
    return text[:limit] or "empty response body"
