# src/filters/query_matcher.py

"""Free-text query matching with AND semantics across tokens."""

from src.models.product import Product


def tokenize(query: str) -> list[str]:
    """Lower-case *query* and split it on whitespace."""
    return query.lower().split()


def haystack(product: Product) -> str:
    """The searchable text of a product: name, brand and type."""
    return " ".join(
        (part or "").lower()
        for part in (product.name, product.brand, product.product_type)
    )


def match_count(product: Product, tokens: list[str]) -> int | None:
    """Number of matched tokens, or ``None`` when any token is missing.

    An empty token list matches everything with a count of 0.
    """
    text = haystack(product)
    for token in tokens:
        if token not in text:
            return None
    return len(tokens)
