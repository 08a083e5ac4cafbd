# src/api/app.py

"""FastAPI application exposing per-feed search and the ranked aggregate."""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, FastAPI, Query, Request, status
from fastapi.responses import JSONResponse

from src.config.settings import Settings
from src.models.errors import AuthError, FeedError, UpstreamError
from src.models.product import Product, normalize_gender
from src.models.query_context import QueryContext
from src.services.aggregator import FeedAggregator
from src.storage.preference_store import PreferenceStore

logger = logging.getLogger("feedrank.api")

router = APIRouter(prefix="/api", tags=["search"])
favorites_router = APIRouter(prefix="/api/favorites", tags=["favorites"])


def _products_response(products: list[Product]) -> JSONResponse:
    return JSONResponse(
        content=[p.to_dict() for p in products],
        headers={"Cache-Control": Settings.CACHE_CONTROL},
    )


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def _feed_error_status(exc: FeedError) -> int:
    if exc.http_status and exc.http_status >= 400:
        return exc.http_status
    if isinstance(exc, (UpstreamError, AuthError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _aggregator(request: Request) -> FeedAggregator:
    aggregator: FeedAggregator = request.app.state.aggregator
    return aggregator


@router.get("/aggregate", summary="Search every feed and rank the merged set")
async def aggregate(
    request: Request,
    query: str = "",
    page: Annotated[int, Query(ge=1)] = 1,
    sort: str = Settings.DEFAULT_SORT,
    min_price: float | None = None,
    max_price: float | None = None,
    gender: str | None = None,
    palette: str | None = None,
    body: str | None = None,
    material: Annotated[list[str] | None, Query()] = None,
) -> JSONResponse:
    """Ranked products across all feeds.

    When every feed fails the stale cached copy or the sample catalog is
    returned with ``X-Feed-Fallback``; with neither, ``{error}`` and 502.
    """
    try:
        context = QueryContext(
            query=query,
            min_price=min_price,
            max_price=max_price,
            gender=(normalize_gender(gender) or gender) if gender else None,
            palette=palette or None,
            body=body or None,
            materials=tuple(m for m in (material or []) if m),
            sort=sort,
        )
    except ValueError as exc:
        return _error_response(str(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)

    result = await _aggregator(request).search(context, page)
    if result.advisory is not None and not (result.stale or result.sample):
        return _error_response(str(result.advisory), status.HTTP_502_BAD_GATEWAY)

    response = _products_response(result.products)
    if result.advisory is not None:
        response.headers["X-Feed-Advisory"] = str(result.advisory)
        response.headers["X-Feed-Fallback"] = (
            "stale" if result.stale else "sample"
        )
    if result.errors:
        response.headers["X-Feed-Errors"] = ",".join(
            e.source_id for e in result.errors
        )
    return response


@router.get("/{source_id}/search", summary="Search a single feed")
async def search_feed(
    request: Request,
    source_id: str,
    query: str = "",
    page: Annotated[int, Query(ge=1)] = 1,
) -> JSONResponse:
    """Normalized products from one feed, or ``{error}`` on failure."""
    feed = _aggregator(request).feed(source_id)
    if feed is None:
        return _error_response(
            f"Unknown source '{source_id}'", status.HTTP_404_NOT_FOUND
        )
    try:
        products = await asyncio.to_thread(feed.search, query, page)
    except FeedError as exc:
        logger.error("Feed %s search failed: %s", source_id, exc)
        return _error_response(str(exc), _feed_error_status(exc))
    return _products_response(products)


@favorites_router.get("/{user_id}", summary="List a user's favorites")
async def list_favorites(user_id: str) -> JSONResponse:
    """Favorite dedup keys in the order they were added."""
    return JSONResponse(content=PreferenceStore().load_favorites(user_id))


@favorites_router.post("/{user_id}", summary="Toggle one favorite")
async def toggle_favorite(
    user_id: str,
    key: Annotated[str, Query(min_length=1)],
) -> JSONResponse:
    """Add *key* when absent, remove it when present."""
    store = PreferenceStore()
    added = store.toggle_favorite(user_id, key)
    return JSONResponse(
        content={
            "key": key,
            "favorite": added,
            "favorites": store.load_favorites(user_id),
        }
    )


def create_app(aggregator: FeedAggregator | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="feedrank",
        description="Aggregated, ranked product search over commerce feeds",
        version="1.0.0",
    )
    app.state.aggregator = aggregator or FeedAggregator()
    # Before the search router so "/api/favorites/search" is not a feed id
    app.include_router(favorites_router)
    app.include_router(router)
    return app
