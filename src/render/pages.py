# src/render/pages.py

"""Product, category, shop and home page renderers.

All functions are pure: they take products and settings and return a
complete HTML document as a string.
"""

import json
from dataclasses import dataclass

from src.config.settings import Settings
from src.models.product import Product, ProductType
from src.render.layout import PageMeta, esc, render_layout


@dataclass(frozen=True)
class Category:
    type: ProductType
    slug: str
    label: str
    intro: str

    @property
    def path(self) -> str:
        return f"/products/{self.slug}.html"


CATEGORIES: dict[ProductType, Category] = {
    ProductType.GARDEN_FLAG: Category(
        type=ProductType.GARDEN_FLAG,
        slug="garden-flags",
        label="Garden Flags",
        intro=(
            "Double-sided garden flags for porches, patios and front "
            "yards, designed to brighten every season."
        ),
    ),
    ProductType.DIGITAL_PATTERN: Category(
        type=ProductType.DIGITAL_PATTERN,
        slug="digital-patterns",
        label="Digital Patterns",
        intro=(
            "Seamless digital patterns for fabric, paper crafts and "
            "print-on-demand projects, delivered as instant downloads."
        ),
    ),
}


def product_path(product: Product) -> str:
    return f"/products/{product.slug}.html"


def product_image(product: Product, settings: Settings) -> str:
    return product.image_local_path or settings.PLACEHOLDER_IMAGE


_SCRIPT_SAFE = str.maketrans({
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
})


def _json_ld_script(data: dict[str, object]) -> str:
    # Markup characters in a script body could close the block early
    payload = json.dumps(data, ensure_ascii=False, indent=2).translate(_SCRIPT_SAFE)
    return f'<script type="application/ld+json">\n{payload}\n</script>\n'


def product_json_ld(product: Product, settings: Settings) -> dict[str, object]:
    return {
        "@context": "https://schema.org",
        "@type": "Product",
        "name": product.title,
        "sku": product.id,
        "image": settings.absolute_url(product_image(product, settings)),
        "description": product.description,
        "category": CATEGORIES[product.type].label,
        "brand": {"@type": "Brand", "name": settings.SITE_NAME},
        "offers": {
            "@type": "Offer",
            "url": product.source_url,
            "availability": "https://schema.org/InStock",
        },
    }


def _breadcrumbs(crumbs: list[tuple[str, str | None]]) -> str:
    items = []
    for label, href in crumbs:
        if href:
            items.append(f'<li><a href="{esc(href)}">{esc(label)}</a></li>')
        else:
            items.append(f'<li aria-current="page">{esc(label)}</li>')
    return (
        '<nav class="breadcrumb" aria-label="Breadcrumb"><ol>'
        + "".join(items)
        + "</ol></nav>"
    )


def render_card(
    product: Product, settings: Settings, show_external: bool = True,
) -> str:
    """One grid card linking to the detail page."""
    href = product_path(product)
    external = (
        f'\n    <a class="external" href="{esc(product.source_url)}" '
        f'target="_blank" rel="noopener">View on Etsy</a>'
        if show_external and product.source_url
        else ""
    )
    return f"""  <article class="card">
    <a href="{esc(href)}">
      <img src="{esc(product_image(product, settings))}" alt="{esc(product.title)}" loading="lazy" />
      <h3>{esc(product.title)}</h3>
    </a>
    <p class="category">{esc(CATEGORIES[product.type].label)}</p>{external}
  </article>"""


def _grid(products: list[Product], settings: Settings) -> str:
    if not products:
        return '<p class="empty">New designs are on their way.</p>'
    cards = "\n".join(render_card(p, settings) for p in products)
    return f'<div class="grid">\n{cards}\n</div>'


def render_product_page(product: Product, settings: Settings) -> str:
    category = CATEGORIES[product.type]
    image = product_image(product, settings)
    trail = _breadcrumbs([
        ("Home", "/"),
        ("Shop", "/shop.html"),
        (category.label, category.path),
        (product.title, None),
    ])
    body = f"""{trail}
<article class="product">
  <img class="hero" src="{esc(image)}" alt="{esc(product.title)}" />
  <h1>{esc(product.title)}</h1>
  <p class="category"><a href="{esc(category.path)}">{esc(category.label)}</a></p>
  <p class="description">{esc(product.description)}</p>
  <p><a class="button" href="{esc(product.source_url)}" target="_blank" rel="noopener">View on Etsy &rarr;</a></p>
</article>"""
    meta = PageMeta(
        title=f"{product.title} | {settings.SITE_NAME}",
        description=product.description,
        path=product_path(product),
        image=image,
        og_type="product",
        head_extra=_json_ld_script(product_json_ld(product, settings)),
    )
    return render_layout(meta, body, settings)


def render_category_page(
    category: Category, products: list[Product], settings: Settings,
) -> str:
    members = [p for p in products if p.type is category.type]
    trail = _breadcrumbs([
        ("Home", "/"),
        ("Shop", "/shop.html"),
        (category.label, None),
    ])
    body = f"""{trail}
<h1>{esc(category.label)}</h1>
<p class="intro">{esc(category.intro)}</p>
{_grid(members, settings)}"""
    meta = PageMeta(
        title=f"{category.label} | {settings.SITE_NAME}",
        description=category.intro,
        path=category.path,
        image=_lead_image(members, settings),
    )
    return render_layout(meta, body, settings)


def render_shop_page(products: list[Product], settings: Settings) -> str:
    sections = []
    for category in CATEGORIES.values():
        members = [p for p in products if p.type is category.type]
        sections.append(
            f'<section id="{esc(category.slug)}">\n'
            f'<h2><a href="{esc(category.path)}">{esc(category.label)}</a></h2>\n'
            f"{_grid(members, settings)}\n</section>"
        )
    description = (
        f"Shop every garden flag and digital pattern from {settings.SITE_NAME}."
    )
    body = (
        _breadcrumbs([("Home", "/"), ("Shop", None)])
        + "\n<h1>Shop</h1>\n"
        + "\n".join(sections)
    )
    meta = PageMeta(
        title=f"Shop | {settings.SITE_NAME}",
        description=description,
        path="/shop.html",
        image=_lead_image(products, settings),
    )
    return render_layout(meta, body, settings)


def featured_products(products: list[Product], settings: Settings) -> list[Product]:
    if settings.HOME_SHOWS_ALL:
        return list(products)
    return products[: settings.FEATURED_COUNT]


def render_home_page(products: list[Product], settings: Settings) -> str:
    featured = featured_products(products, settings)
    links = " ".join(
        f'<a class="button" href="{esc(c.path)}">{esc(c.label)}</a>'
        for c in CATEGORIES.values()
    )
    description = (
        f"Handmade garden flags and seamless digital patterns by "
        f"{settings.SITE_NAME}."
    )
    body = f"""<section class="hero">
  <h1>{esc(settings.SITE_NAME)}</h1>
  <p>{esc(description)}</p>
  <p>{links}</p>
</section>
<section class="featured">
<h2>Featured designs</h2>
{_grid(featured, settings)}
<p><a href="/shop.html">Browse the full shop &rarr;</a></p>
</section>"""
    meta = PageMeta(
        title=settings.SITE_NAME,
        description=description,
        path="/",
        image=_lead_image(featured, settings),
    )
    return render_layout(meta, body, settings)


def _lead_image(products: list[Product], settings: Settings) -> str:
    return (
        product_image(products[0], settings)
        if products
        else settings.PLACEHOLDER_IMAGE
    )
