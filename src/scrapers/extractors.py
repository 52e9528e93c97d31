# src/scrapers/extractors.py

"""Ordered metadata extractors for listing pages.

Each extractor is a pure function that inspects one source (a parsed
page or a feed entry) and returns :class:`ExtractedFields` or ``None``.
:func:`resolve_fields` walks the results in priority order and keeps the
first non-empty value for each field:

1. ``application/ld+json`` Product blocks
2. Open Graph / Twitter Card meta tags
3. Plain ``<meta name=...>`` tags and ``<title>``
4. First CDN-hosted ``<img>`` in the DOM
5. Fields carried over from the RSS/JSON discovery entry

Values come back as plain text: sources that carry HTML (JSON-LD
script bodies, feed descriptions) are converted here, while meta tag
content has already been entity-decoded by the parser.
"""

import json
import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

from bs4 import BeautifulSoup, Tag

from src.models.listing import ListingRef
from src.scrapers.normalizers import markup_to_text, strip_html

logger = logging.getLogger("charmed_site.extractors")

T = TypeVar("T")

_CDN_SIZE_RE = re.compile(r"il_\d+x(\d+|N)")
_LARGEST_CDN_SIZE = "il_794xN"
_IMG_SRC_RE = re.compile(
    r"<img[^>]+src=[\"']([^\"']+)[\"']", re.IGNORECASE
)


@dataclass(frozen=True)
class ExtractedFields:
    """Raw (uncleaned) metadata found by a single extractor."""

    title: str | None = None
    description: str | None = None
    image_url: str | None = None

    def is_empty(self) -> bool:
        return not (self.title or self.description or self.image_url)


def first_match(candidates: Iterable[T | None]) -> T | None:
    """Return the first candidate that is neither ``None`` nor empty."""
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def _or_none(fields: ExtractedFields) -> ExtractedFields | None:
    return None if fields.is_empty() else fields


def upscale_cdn_image(url: str) -> str:
    """Request the largest rendition of a CDN image."""
    return _CDN_SIZE_RE.sub(_LARGEST_CDN_SIZE, url)


# ── JSON-LD ──────────────────────────────────────────────


def _iter_ld_nodes(data: Any) -> Iterable[dict[str, Any]]:
    """Flatten lists and ``@graph`` containers into plain nodes."""
    if isinstance(data, list):
        for item in data:
            yield from _iter_ld_nodes(item)
    elif isinstance(data, dict):
        if "@graph" in data:
            yield from _iter_ld_nodes(data["@graph"])
        yield data


def _is_product_node(node: dict[str, Any]) -> bool:
    node_type = node.get("@type")
    types = node_type if isinstance(node_type, list) else [node_type]
    return any(
        isinstance(t, str) and t.lower() in ("product", "productgroup")
        for t in types
    )


def _ld_image(value: Any) -> str | None:
    """Pick a URL out of the many shapes ``image`` takes in JSON-LD."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, list):
        return first_match(_ld_image(v) for v in value)
    if isinstance(value, dict):
        return _ld_image(
            value.get("contentURL")
            or value.get("contentUrl")
            or value.get("url")
        )
    return None


def extract_json_ld(soup: BeautifulSoup) -> ExtractedFields | None:
    """Use the first parseable Product block in ``ld+json`` scripts."""
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue
        for node in _iter_ld_nodes(data):
            if not _is_product_node(node):
                continue
            name = node.get("name")
            description = node.get("description")
            # Script bodies are not entity-decoded by the parser
            fields = ExtractedFields(
                title=markup_to_text(name) if isinstance(name, str) else None,
                description=(
                    markup_to_text(description)
                    if isinstance(description, str)
                    else None
                ),
                image_url=_ld_image(node.get("image")),
            )
            if not fields.is_empty():
                return fields
    return None


# ── Meta tags ────────────────────────────────────────────


def _meta_content(
    soup: BeautifulSoup, attr: str, names: tuple[str, ...],
) -> str | None:
    for name in names:
        tag = soup.find("meta", attrs={attr: name})
        if isinstance(tag, Tag):
            content = tag.get("content")
            if isinstance(content, str) and content.strip():
                return content.strip()
    return None


def extract_social_meta(soup: BeautifulSoup) -> ExtractedFields | None:
    """Open Graph tags, falling back to their Twitter Card equivalents."""
    return _or_none(
        ExtractedFields(
            title=first_match([
                _meta_content(soup, "property", ("og:title",)),
                _meta_content(soup, "name", ("twitter:title",)),
            ]),
            description=first_match([
                _meta_content(soup, "property", ("og:description",)),
                _meta_content(soup, "name", ("twitter:description",)),
            ]),
            image_url=first_match([
                _meta_content(
                    soup, "property", ("og:image", "og:image:secure_url")
                ),
                _meta_content(
                    soup, "name", ("twitter:image", "twitter:image:src")
                ),
            ]),
        )
    )


def extract_plain_meta(soup: BeautifulSoup) -> ExtractedFields | None:
    """``<meta name=title|description>`` and the document ``<title>``."""
    title = _meta_content(soup, "name", ("title",))
    if not title and soup.title and soup.title.string:
        title = soup.title.string.strip() or None
    return _or_none(
        ExtractedFields(
            title=title,
            description=_meta_content(soup, "name", ("description",)),
        )
    )


# ── DOM image query ──────────────────────────────────────


def find_cdn_images(soup: BeautifulSoup, cdn_host: str) -> list[str]:
    """All CDN image URLs in document order, upscaled and de-duplicated."""
    selector = f'img[src*="{cdn_host}"], img[data-src*="{cdn_host}"]'
    seen: dict[str, None] = {}
    for img in soup.select(selector):
        src = img.get("src")
        if not isinstance(src, str) or cdn_host not in src:
            src = img.get("data-src")
        if isinstance(src, str) and src:
            seen.setdefault(upscale_cdn_image(src), None)
    return list(seen)


def make_dom_image_extractor(
    cdn_host: str,
) -> Callable[[BeautifulSoup], ExtractedFields | None]:
    """Bind the CDN host into a page extractor."""

    def extract_dom_image(soup: BeautifulSoup) -> ExtractedFields | None:
        images = find_cdn_images(soup, cdn_host)
        return ExtractedFields(image_url=images[0]) if images else None

    return extract_dom_image


# ── Feed entry ───────────────────────────────────────────


def sniff_img_src(html: str) -> str | None:
    """First ``<img src>`` inside an encoded HTML body."""
    match = _IMG_SRC_RE.search(html or "")
    return match.group(1) if match else None


def extract_feed_entry(ref: ListingRef) -> ExtractedFields | None:
    """Fields the discovery step already knows about a listing."""
    return _or_none(
        ExtractedFields(
            title=markup_to_text(ref.title) or None,
            description=strip_html(
                first_match([ref.description, ref.content_html]) or ""
            ) or None,
            image_url=first_match([
                ref.image_url,
                sniff_img_src(ref.content_html),
                sniff_img_src(ref.description),
            ]),
        )
    )


# ── Cascade ──────────────────────────────────────────────


PageExtractor = Callable[[BeautifulSoup], ExtractedFields | None]


def page_extractors(cdn_host: str) -> list[PageExtractor]:
    """Page extractors in priority order."""
    return [
        extract_json_ld,
        extract_social_meta,
        extract_plain_meta,
        make_dom_image_extractor(cdn_host),
    ]


def run_extractors(
    soup: BeautifulSoup | None,
    ref: ListingRef,
    cdn_host: str,
) -> list[ExtractedFields]:
    """Run every applicable extractor, keeping only non-empty results."""
    results: list[ExtractedFields | None] = []
    if soup is not None:
        results.extend(extract(soup) for extract in page_extractors(cdn_host))
    results.append(extract_feed_entry(ref))
    return [r for r in results if r is not None]


def resolve_fields(results: list[ExtractedFields]) -> ExtractedFields:
    """Merge extractor results field by field, highest priority first."""
    return ExtractedFields(
        title=first_match(r.title for r in results),
        description=first_match(r.description for r in results),
        image_url=first_match(r.image_url for r in results),
    )
