# tests/test_deduplicator.py

"""Tests for key-based product deduplication."""

import unittest

from src.filters.deduplicator import ProductDeduplicator
from src.models.product import Product


def _p(
    pid: str = "", url: str | None = None, name: str = "x", source: str = "a"
) -> Product:
    return Product(id=pid, url=url, name=name, source=source)


class TestProductDeduplicator(unittest.TestCase):
    """ProductDeduplicator.deduplicate unit tests."""

    def test_empty_input(self) -> None:
        """Empty list returns empty with 0 removed."""
        result, removed = ProductDeduplicator.deduplicate([])
        self.assertEqual(result, [])
        self.assertEqual(removed, 0)

    def test_same_id_keeps_first(self) -> None:
        """Two products with identical id collapse to the first."""
        products = [_p("p1", name="first", source="rakuten"),
                    _p("p1", name="second", source="skimlinks")]
        result, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual(len(result), 1)
        self.assertEqual(result[0].name, "first")
        self.assertEqual(result[0].source, "rakuten")
        self.assertEqual(removed, 1)

    def test_no_field_merging(self) -> None:
        """The kept record is not enriched from the dropped one."""
        products = [
            Product(id="p1", name="bare"),
            Product(id="p1", name="rich", price=10.0, rating=4.0),
        ]
        result, _ = ProductDeduplicator.deduplicate(products)
        self.assertIsNone(result[0].price)
        self.assertIsNone(result[0].rating)

    def test_url_used_when_id_missing(self) -> None:
        """Products without an id dedupe on url."""
        products = [
            _p(url="https://x.com/a", name="one"),
            _p(url="https://x.com/a", name="two"),
            _p(url="https://x.com/b", name="three"),
        ]
        result, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual([p.name for p in result], ["one", "three"])
        self.assertEqual(removed, 1)

    def test_keyless_products_discarded(self) -> None:
        """Records with neither id nor url never survive."""
        products = [_p(name="ghost"), _p("p1"), _p(url="", name="ghost2")]
        result, removed = ProductDeduplicator.deduplicate(products)
        self.assertEqual([p.id for p in result], ["p1"])
        self.assertEqual(removed, 2)

    def test_id_and_url_keys_share_namespace(self) -> None:
        """An id equal to another record's url-derived key collides."""
        products = [
            _p("https://x.com/a", name="by-id"),
            _p(url="https://x.com/a", name="by-url"),
        ]
        result, _ = ProductDeduplicator.deduplicate(products)
        self.assertEqual([p.name for p in result], ["by-id"])

    def test_idempotent(self) -> None:
        """Deduplicating twice changes nothing the second time."""
        products = [_p("a"), _p("b"), _p("a"), _p(url="u"), _p(url="u")]
        once, _ = ProductDeduplicator.deduplicate(products)
        twice, removed = ProductDeduplicator.deduplicate(once)
        self.assertEqual(once, twice)
        self.assertEqual(removed, 0)

    def test_order_preserved(self) -> None:
        """Surviving products keep their input order."""
        products = [_p("c"), _p("a"), _p("b"), _p("a")]
        result, _ = ProductDeduplicator.deduplicate(products)
        self.assertEqual([p.id for p in result], ["c", "a", "b"])


if __name__ == "__main__":
    unittest.main()
