# src/config/settings.py

"""Central configuration for the feedrank pipeline."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the feedrank pipeline."""

    # --- Upstream requests ---
    REQUEST_TIMEOUT: int = 8            # Per-call upstream deadline (secs)
    FEED_DEADLINE: float = 10.0         # Hard cap on one feed inside a cycle
    MAX_RETRIES: int = 1                # Attempts per upstream call
    PER_PAGE: int = 50                  # Page size for Skimlinks / Rakuten
    AMAZON_ITEM_COUNT: int = 10         # PA-API SearchItems hard limit

    # --- Caching ---
    CACHE_FRESH_TTL: float = 120.0      # Served without refetching (secs)
    CACHE_STALE_TTL: float = 600.0      # Served only when every feed fails
    RAKUTEN_TOKEN_TTL: float = 3600.0   # Fallback when expires_in is absent
    TOKEN_EXPIRY_MARGIN: float = 30.0   # Refresh this early (secs)

    # --- Ranking ---
    DEFAULT_SORT: str = "relevance"

    # --- Credentials ---
    SKIMLINKS_PRODUCT_API_KEY: str = os.getenv(
        "SKIMLINKS_PRODUCT_API_KEY", ""
    )
    RAKUTEN_CLIENT_ID: str = os.getenv("RAKUTEN_CLIENT_ID", "")
    RAKUTEN_CLIENT_SECRET: str = os.getenv("RAKUTEN_CLIENT_SECRET", "")
    AMAZON_PAAPI_ACCESS_KEY: str = os.getenv("AMAZON_PAAPI_ACCESS_KEY", "")
    AMAZON_PAAPI_SECRET_KEY: str = os.getenv("AMAZON_PAAPI_SECRET_KEY", "")
    AMAZON_PAAPI_PARTNER_TAG: str = os.getenv(
        "AMAZON_PAAPI_PARTNER_TAG", ""
    )
    AMAZON_PAAPI_REGION: str = os.getenv("AMAZON_PAAPI_REGION", "us-east-1")
    AMAZON_PAAPI_HOST: str = os.getenv(
        "AMAZON_PAAPI_HOST", "webservices.amazon.com"
    )

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    # --- HTTP interface ---
    API_HOST: str = os.getenv("FEEDRANK_HOST", "127.0.0.1")
    API_PORT: int = int(os.getenv("FEEDRANK_PORT", "8000"))
    CACHE_CONTROL: str = "s-maxage=120, stale-while-revalidate=600"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    LOGS_DIR: Path = BASE_DIR / "logs"
    PREFS_DIR: Path = BASE_DIR / "prefs"
    SAMPLE_CATALOG_PATH: Path = BASE_DIR / "src" / "config" / "sample_products.json"

    # --- Fallback ---
    # Shown (marked source="sample") when every feed fails and no stale
    # cache entry exists
    SAMPLE_FALLBACK: bool = os.getenv("FEEDRANK_SAMPLE_FALLBACK", "1") != "0"

    # --- Sources (declaration order is merge precedence) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "rakuten",
            "label": "Rakuten",
            "feed": "src.feeds.rakuten_feed.RakutenFeed",
        },
        {
            "id": "skimlinks",
            "label": "Skimlinks",
            "feed": "src.feeds.skimlinks_feed.SkimlinksFeed",
        },
        {
            "id": "amazon",
            "label": "Amazon",
            "feed": "src.feeds.amazon_feed.AmazonFeed",
        },
    ]
