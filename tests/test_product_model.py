# tests/test_product_model.py

"""Tests for the Product, ListingRef and ScrapeOutcome models."""

import json
import unittest

from src.models.listing import ScrapeOutcome, partition_outcomes
from src.models.product import Product, ProductType


def _make_product(slug: str = "spring-flag-1") -> Product:
    return Product(
        id="1",
        slug=slug,
        title="Spring <Flag> & \"Co\"",
        description="Lovely flag",
        type=ProductType.DIGITAL_PATTERN,
        source_url="https://www.etsy.com/listing/1",
        image_remote_url="https://i.etsystatic.com/x.jpg",
        image_local_path="/assets/products/spring-flag-1.jpg",
    )


class TestProduct(unittest.TestCase):
    """Serialisation of Product records."""

    def test_defaults(self) -> None:
        """Type defaults to garden-flag, tags to an empty list."""
        product = Product(id="9", slug="x-9", title="X", description="Y")
        self.assertIs(product.type, ProductType.GARDEN_FLAG)
        self.assertEqual(product.tags, [])
        self.assertIsNone(product.image_local_path)

    def test_to_dict_uses_snapshot_keys(self) -> None:
        """to_dict emits the camelCase snapshot keys and enum value."""
        data = _make_product().to_dict()
        self.assertEqual(data["type"], "digital-pattern")
        self.assertEqual(data["sourceUrl"], "https://www.etsy.com/listing/1")
        self.assertEqual(
            set(data),
            {
                "id", "slug", "title", "description", "type",
                "sourceUrl", "imageRemoteUrl", "imageLocalPath", "tags",
            },
        )

    def test_json_round_trip(self) -> None:
        """Dumping and reloading through JSON preserves every field."""
        original = _make_product()
        restored = Product.from_dict(
            json.loads(json.dumps(original.to_dict()))
        )
        self.assertEqual(restored, original)

    def test_tags_are_not_shared(self) -> None:
        """Each product gets its own tags list."""
        a = Product(id="1", slug="a-1", title="A", description="")
        b = Product(id="2", slug="b-2", title="B", description="")
        a.tags.append("x")
        self.assertEqual(b.tags, [])


class TestScrapeOutcome(unittest.TestCase):
    """Result-type behaviour for per-listing scrapes."""

    def test_success_and_failure(self) -> None:
        """ok reflects whether a product is present."""
        good = ScrapeOutcome.success("u1", _make_product())
        bad = ScrapeOutcome.failure("u2", "TimeoutError: slow")
        self.assertTrue(good.ok)
        self.assertFalse(bad.ok)
        self.assertEqual(bad.error, "TimeoutError: slow")

    def test_partition_preserves_order(self) -> None:
        """Products come back in input order, failures separated."""
        outcomes = [
            ScrapeOutcome.success("u1", _make_product("a-1")),
            ScrapeOutcome.failure("u2", "boom"),
            ScrapeOutcome.success("u3", _make_product("c-3")),
        ]
        products, failures = partition_outcomes(outcomes)
        self.assertEqual([p.slug for p in products], ["a-1", "c-3"])
        self.assertEqual([f.url for f in failures], ["u2"])


if __name__ == "__main__":
    unittest.main()
