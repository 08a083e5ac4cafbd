# src/models/product.py

"""Canonical product record shared by every feed adapter."""

from dataclasses import dataclass, field
from typing import Any

GENDERS: tuple[str, ...] = ("Female", "Male", "Unisex")

_GENDER_ALIASES: dict[str, str] = {
    "female": "Female",
    "women": "Female",
    "womens": "Female",
    "woman": "Female",
    "male": "Male",
    "men": "Male",
    "mens": "Male",
    "man": "Male",
    "unisex": "Unisex",
}


def normalize_gender(value: Any) -> str | None:
    """Map an upstream gender label onto ``Female``/``Male``/``Unisex``.

    Unknown or missing labels return ``None``, which the filter treats
    as unrestricted.
    """
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("'", "").replace("’", "")
    return _GENDER_ALIASES.get(key)


@dataclass(frozen=True)
class Product:
    """A normalized listing from any feed.

    ``score`` is the only derived field; the ranking engine sets it on
    a copy via :func:`dataclasses.replace`.
    """

    id: str = ""
    name: str | None = None
    brand: str | None = None
    product_type: str | None = None
    price: float | None = None
    gender: str | None = None
    palette: str | None = None
    body: list[str] = field(default_factory=list)
    sizes: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    image: str | None = None
    url: str | None = None
    rating: float | None = None
    in_stock: bool | None = None
    source: str = ""
    score: float | None = None

    @property
    def dedup_key(self) -> str:
        """Identity used for deduplication: ``id``, else ``url``."""
        return self.id or self.url or ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], **overrides: Any) -> "Product":
        """Build a record from the public JSON shape produced by :meth:`to_dict`."""
        values: dict[str, Any] = {
            "id": str(data.get("id") or ""),
            "name": data.get("name"),
            "brand": data.get("brand"),
            "product_type": data.get("type"),
            "price": data.get("price"),
            "gender": data.get("gender"),
            "palette": data.get("palette"),
            "body": list(data.get("body") or []),
            "sizes": list(data.get("sizes") or []),
            "materials": list(data.get("materials") or []),
            "image": data.get("image"),
            "url": data.get("url"),
            "rating": data.get("rating"),
            "in_stock": data.get("inStock"),
            "source": str(data.get("source") or ""),
        }
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the public JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "type": self.product_type,
            "price": self.price,
            "gender": self.gender,
            "palette": self.palette,
            "body": list(self.body),
            "sizes": list(self.sizes),
            "materials": list(self.materials),
            "image": self.image,
            "url": self.url,
            "rating": self.rating,
            "inStock": self.in_stock,
            "source": self.source,
            "score": self.score,
        }
