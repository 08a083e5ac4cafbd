# src/feeds/token_cache.py

"""Adapter-scoped cache for short-lived bearer tokens."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger("feedrank.tokens")


@dataclass
class TokenCache:
    """Holds one bearer token until shortly before it expires.

    Read-check-refresh without a lock: two threads racing past an
    expired token each fetch a new one, costing one extra round trip.
    """

    margin: float = 30.0
    clock: Callable[[], float] = field(default=time.monotonic)
    _token: str = ""
    _expires_at: float = 0.0

    def get(self) -> str | None:
        """Return the cached token, or ``None`` when absent or expired."""
        if self._token and self.clock() < self._expires_at:
            return self._token
        return None

    def store(self, token: str, ttl: float) -> None:
        """Cache *token* for *ttl* seconds, less the safety margin."""
        self._token = token
        self._expires_at = self.clock() + max(ttl - self.margin, 0.0)
        logger.debug("Cached token valid for %.0fs", ttl)

    def invalidate(self) -> None:
        """Forget the token so the next call refetches it."""
        self._token = ""
        self._expires_at = 0.0
