# src/render/sitemap.py

"""XML sitemap covering static pages and every product page."""

from xml.sax.saxutils import escape as xml_escape

from src.config.settings import Settings
from src.models.product import Product
from src.render.pages import CATEGORIES, product_path

STATIC_PATHS: tuple[str, ...] = ("/", "/shop.html")


def sitemap_urls(products: list[Product], settings: Settings) -> list[str]:
    """Absolute URLs in sitemap order, without duplicates."""
    paths = [
        *STATIC_PATHS,
        *(category.path for category in CATEGORIES.values()),
        *(product_path(p) for p in products),
    ]
    return list(dict.fromkeys(settings.absolute_url(path) for path in paths))


def render_sitemap(products: list[Product], settings: Settings) -> str:
    entries = "".join(
        f"  <url><loc>{xml_escape(url)}</loc></url>\n"
        for url in sitemap_urls(products, settings)
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        f"{entries}"
        "</urlset>\n"
    )
