# src/models/query_context.py

"""Per-cycle query input: free text plus structured preferences."""

import math
from dataclasses import dataclass
from typing import Any

from src.models.product import GENDERS, normalize_gender

SORT_MODES: tuple[str, ...] = ("relevance", "price-asc", "price-desc", "rating")


@dataclass(frozen=True)
class QueryContext:
    """Everything the ranking engine needs besides the records.

    Empty strings for ``gender``, ``palette`` and ``body`` mean unset,
    as does an empty ``materials`` tuple.  Construction fails loudly
    on values the ranking engine cannot interpret.
    """

    query: str = ""
    min_price: float | None = None
    max_price: float | None = None
    gender: str | None = None
    palette: str | None = None
    body: str | None = None
    materials: tuple[str, ...] = ()
    sort: str = "relevance"

    def __post_init__(self) -> None:
        if not isinstance(self.query, str):
            raise ValueError("query must be a string")
        if self.sort not in SORT_MODES:
            raise ValueError(
                f"Unknown sort mode {self.sort!r}; "
                f"expected one of {', '.join(SORT_MODES)}"
            )
        if self.gender and self.gender not in GENDERS:
            raise ValueError(
                f"Unknown gender {self.gender!r}; "
                f"expected one of {', '.join(GENDERS)}"
            )
        for bound in (self.min_price, self.max_price):
            if bound is None:
                continue
            if isinstance(bound, bool) or not isinstance(
                bound, (int, float)
            ):
                raise ValueError(f"Price bound {bound!r} is not a number")
            if math.isnan(bound):
                raise ValueError("Price bound must not be NaN")
        if isinstance(self.materials, str):
            raise ValueError("materials must be a sequence, not a string")
        # Lists are accepted for convenience and frozen here
        object.__setattr__(self, "materials", tuple(self.materials))

    @property
    def price_bounds(self) -> tuple[float, float]:
        """Inclusive ``(low, high)`` with the bounds put in order."""
        low = -math.inf if self.min_price is None else float(self.min_price)
        high = math.inf if self.max_price is None else float(self.max_price)
        return min(low, high), max(low, high)

    @classmethod
    def from_preferences(
        cls,
        prefs: dict[str, Any] | None,
        **overrides: Any,
    ) -> "QueryContext":
        """Build a context from a stored preference blob.

        Only ``gender``, ``palette``, ``body`` and ``materials`` are
        read; any other key in the blob is ignored.  Keyword arguments
        (``query``, ``sort``, price bounds, ...) take precedence.
        """
        prefs = prefs or {}
        materials = prefs.get("materials") or []
        if not isinstance(materials, (list, tuple)):
            materials = []
        values: dict[str, Any] = {
            "gender": normalize_gender(prefs.get("gender")),
            "palette": prefs.get("palette") or None,
            "body": prefs.get("body") or None,
            "materials": tuple(str(m) for m in materials if m),
        }
        values.update(
            {k: v for k, v in overrides.items() if v is not None}
        )
        return cls(**values)
