# src/models/product.py

"""Product data model for inter-module data flow."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ProductType(str, Enum):
    """The two fixed product buckets."""

    GARDEN_FLAG = "garden-flag"
    DIGITAL_PATTERN = "digital-pattern"


@dataclass
class Product:
    """A single scraped shop listing, ready for rendering."""

    id: str
    slug: str
    title: str
    description: str
    type: ProductType = ProductType.GARDEN_FLAG
    source_url: str = ""
    image_remote_url: str | None = None
    image_local_path: str | None = None
    tags: list[str] = field(default_factory=lambda: list[str]())

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the ``data/products.json`` record shape."""
        return {
            "id": self.id,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "sourceUrl": self.source_url,
            "imageRemoteUrl": self.image_remote_url,
            "imageLocalPath": self.image_local_path,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """Rebuild a Product from a ``data/products.json`` record."""
        return cls(
            id=str(data["id"]),
            slug=str(data["slug"]),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            type=ProductType(data.get("type", ProductType.GARDEN_FLAG.value)),
            source_url=str(data.get("sourceUrl", "")),
            image_remote_url=data.get("imageRemoteUrl"),
            image_local_path=data.get("imageLocalPath"),
            tags=[str(t) for t in data.get("tags", [])],
        )
