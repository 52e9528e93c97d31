# src/render/layout.py

"""Shared HTML shell: head metadata, header/nav, footer."""

from dataclasses import dataclass
from datetime import datetime
from html import escape

from src.config.settings import Settings


def esc(value: object) -> str:
    """HTML-escape text for element bodies and quoted attributes."""
    return escape(str(value), quote=True)


@dataclass(frozen=True)
class PageMeta:
    """Per-page head values; all plain text, escaped on render."""

    title: str
    description: str
    path: str
    image: str
    og_type: str = "website"
    head_extra: str = ""


@dataclass(frozen=True)
class NavLink:
    label: str
    href: str


def nav_links() -> list[NavLink]:
    return [
        NavLink("Home", "/"),
        NavLink("Shop", "/shop.html"),
        NavLink("Garden Flags", "/products/garden-flags.html"),
        NavLink("Digital Patterns", "/products/digital-patterns.html"),
    ]


def render_layout(meta: PageMeta, body_html: str, settings: Settings) -> str:
    """Wrap *body_html* in the full document shell."""
    canonical = settings.absolute_url(meta.path)
    image = settings.absolute_url(meta.image)
    nav = "\n".join(
        f'    <a href="{esc(link.href)}">{esc(link.label)}</a>'
        for link in nav_links()
    )
    year = datetime.now().year
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>{esc(meta.title)}</title>
  <meta name="description" content="{esc(meta.description)}" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <link rel="canonical" href="{esc(canonical)}" />
  <link rel="stylesheet" href="{esc(settings.STYLESHEET_PATH)}" />
  <link rel="icon" href="{esc(settings.FAVICON_PATH)}" />

  <meta property="og:site_name" content="{esc(settings.SITE_NAME)}" />
  <meta property="og:title" content="{esc(meta.title)}" />
  <meta property="og:description" content="{esc(meta.description)}" />
  <meta property="og:image" content="{esc(image)}" />
  <meta property="og:url" content="{esc(canonical)}" />
  <meta property="og:type" content="{esc(meta.og_type)}" />

  <meta name="twitter:card" content="summary_large_image" />
  <meta name="twitter:title" content="{esc(meta.title)}" />
  <meta name="twitter:description" content="{esc(meta.description)}" />
  <meta name="twitter:image" content="{esc(image)}" />
{meta.head_extra}</head>
<body>
<header class="site-header">
  <a class="brand" href="/">{esc(settings.SITE_NAME)}</a>
  <nav>
{nav}
  </nav>
</header>

<main>
{body_html}
</main>

<footer class="site-footer">
  <p>&copy; {year} {esc(settings.SITE_NAME)}</p>
</footer>
</body>
</html>
"""
