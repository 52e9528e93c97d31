# tests/test_file_manager.py

"""Tests for the FileManager storage module."""

import json
import tempfile
import unittest
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.product import Product, ProductType
from src.storage.file_manager import FileManager


class TestFileManager(unittest.TestCase):
    """Snapshot and page writing."""

    def setUp(self) -> None:
        """Point the output root at a temp directory."""
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.settings = Settings(OUTPUT_ROOT=self.tmp_dir)
        self.fm = FileManager(self.settings)

    def _sample_products(self) -> list[Product]:
        """Return a small list of test products."""
        return [
            Product(
                id="12345",
                slug="spring-garden-flag-12345",
                title="Spring Garden Flag",
                description="Lovely flag",
                source_url="https://www.etsy.com/listing/12345",
                image_local_path="/assets/product-placeholder.jpg",
            ),
            Product(
                id="67890",
                slug="cardinal-seamless-pattern-67890",
                title="Cardinal Seamless Pattern — “Ünïcode”",
                description="Repeat tile",
                type=ProductType.DIGITAL_PATTERN,
                source_url="https://www.etsy.com/listing/67890",
                image_remote_url="https://i.etsystatic.com/x.png",
                image_local_path="/assets/products/cardinal-seamless-pattern-67890.png",
            ),
        ]

    def test_init_creates_directories(self) -> None:
        """Output, data, products and asset directories exist."""
        self.assertTrue((self.tmp_dir / "data").is_dir())
        self.assertTrue((self.tmp_dir / "products").is_dir())
        self.assertTrue((self.tmp_dir / "assets" / "products").is_dir())

    def test_save_products_writes_json_array(self) -> None:
        """save_products writes a JSON array at data/products.json."""
        path = self.fm.save_products(self._sample_products())

        self.assertEqual(path, self.tmp_dir / "data" / "products.json")
        with open(path, encoding="utf-8") as f:
            data: list[dict[str, Any]] = json.load(f)
        self.assertEqual(len(data), 2)
        self.assertEqual(data[0]["slug"], "spring-garden-flag-12345")
        self.assertEqual(data[1]["type"], "digital-pattern")

    def test_round_trip_preserves_key_fields(self) -> None:
        """Reading the snapshot back keeps slug/title/type/sourceUrl."""
        products = self._sample_products()
        self.fm.save_products(products)
        restored = self.fm.load_products()

        for before, after in zip(products, restored):
            with self.subTest(slug=before.slug):
                self.assertEqual(after.slug, before.slug)
                self.assertEqual(after.title, before.title)
                self.assertEqual(after.type, before.type)
                self.assertEqual(after.source_url, before.source_url)

    def test_load_products_missing_file(self) -> None:
        """load_products returns an empty list before the first save."""
        self.assertEqual(self.fm.load_products(), [])

    def test_save_products_empty_list(self) -> None:
        """An empty snapshot is still valid JSON."""
        path = self.fm.save_products([])
        self.assertEqual(json.loads(path.read_text(encoding="utf-8")), [])

    def test_write_text_nested_path(self) -> None:
        """write_text creates parents and strips a leading slash."""
        path = self.fm.write_text("/products/a-1.html", "<html></html>")
        self.assertEqual(path, self.tmp_dir / "products" / "a-1.html")
        self.assertEqual(path.read_text(encoding="utf-8"), "<html></html>")

    def test_write_text_overwrites(self) -> None:
        """Re-running a build regenerates pages in place."""
        self.fm.write_text("index.html", "old")
        self.fm.write_text("index.html", "new")
        self.assertEqual(
            (self.tmp_dir / "index.html").read_text(encoding="utf-8"), "new"
        )


if __name__ == "__main__":
    unittest.main()
