# src/storage/file_manager.py

"""Handles writing generated site artifacts to disk."""

import json
import logging
from pathlib import Path

from src.config.settings import Settings
from src.models.product import Product

logger = logging.getLogger("charmed_site.storage")


class FileManager:
    """Writes pages, the sitemap and the product snapshot under the output root."""

    def __init__(self, settings: Settings) -> None:
        self.root: Path = settings.OUTPUT_ROOT
        self.data_file: Path = self.root / settings.DATA_FILE
        self.products_dir: Path = self.root / settings.PRODUCTS_DIR
        for directory in (
            self.root,
            self.data_file.parent,
            self.products_dir,
            settings.asset_dir,
        ):
            directory.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, root=%s", self.root)

    def save_products(self, products: list[Product]) -> Path:
        """Write the ``data/products.json`` snapshot."""
        data = [p.to_dict() for p in products]
        with open(self.data_file, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d products to %s", len(products), self.data_file
        )
        return self.data_file

    def load_products(self) -> list[Product]:
        """Read the snapshot back (empty list when absent)."""
        if not self.data_file.exists():
            return []
        with open(self.data_file, encoding="utf-8") as f:
            data: list[dict[str, object]] = json.load(f)
        return [Product.from_dict(record) for record in data]

    def write_text(self, relative_path: str, content: str) -> Path:
        """Write a page or sitemap at *relative_path* under the root."""
        path = self.root / relative_path.lstrip("/")
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        logger.debug("Wrote %s (%d bytes)", path, len(content))
        return path
