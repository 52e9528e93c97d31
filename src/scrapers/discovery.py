# src/scrapers/discovery.py

"""Listing discovery: turn a shop feed or index into listing URLs.

Every strategy returns listings de-duplicated by numeric id, in the
order the source presents them. Any failure to reach or parse the source,
or an empty result, raises :class:`DiscoveryError`.
"""

import json
import logging
from typing import Any, Protocol

from bs4 import BeautifulSoup, Tag

from src.config.settings import Settings
from src.models.listing import ListingRef
from src.scrapers.errors import DiscoveryError, FetchError
from src.scrapers.normalizers import extract_listing_id, strip_query

logger = logging.getLogger("charmed_site.discovery")


class TextFetcher(Protocol):
    async def fetch_text(self, url: str, accept: str | None = None) -> str: ...


class LinkCollector(Protocol):
    async def collect_links(self, url: str, marker: str) -> list[str]: ...


def _dedupe(refs: list[ListingRef]) -> list[ListingRef]:
    """Keep the first ref per listing id, preserving order."""
    by_id: dict[str, ListingRef] = {}
    for ref in refs:
        by_id.setdefault(ref.listing_id, ref)
    return list(by_id.values())


def _text(item: Tag, name: str) -> str:
    node = item.find(name)
    return node.get_text().strip() if isinstance(node, Tag) else ""


def _attr(item: Tag, name: str, attr: str) -> str | None:
    node = item.find(name)
    if isinstance(node, Tag):
        value = node.get(attr)
        if isinstance(value, str) and value:
            return value
    return None


# ── RSS ──────────────────────────────────────────────────


def parse_rss(xml_text: str) -> list[ListingRef]:
    """Parse ``<rss><channel><item>`` entries into listing refs.

    Items without a ``/listing/<id>`` link are skipped.
    """
    soup = BeautifulSoup(xml_text, "xml")
    channel = soup.find("channel")
    if not isinstance(channel, Tag):
        raise DiscoveryError("RSS document has no <channel>")

    refs: list[ListingRef] = []
    for item in channel.find_all("item"):
        link = strip_query(_text(item, "link"))
        listing_id = extract_listing_id(link)
        if not listing_id:
            logger.debug("Skipping RSS item without listing link: %r", link)
            continue
        refs.append(
            ListingRef(
                url=link,
                listing_id=listing_id,
                title=_text(item, "title"),
                description=_text(item, "description"),
                content_html=_text(item, "encoded"),
                image_url=(
                    _attr(item, "content", "url")
                    or _attr(item, "thumbnail", "url")
                    or _attr(item, "enclosure", "url")
                ),
            )
        )
    return _dedupe(refs)


async def discover_from_rss(
    fetcher: TextFetcher, settings: Settings,
) -> list[ListingRef]:
    url = settings.SHOP_RSS_URL
    logger.info("Fetching shop RSS: %s", url)
    try:
        xml_text = await fetcher.fetch_text(
            url, accept="application/rss+xml, application/xml;q=0.9"
        )
    except FetchError as exc:
        raise DiscoveryError(f"RSS feed unreachable: {exc}") from exc
    refs = parse_rss(xml_text)
    if not refs:
        raise DiscoveryError(f"RSS feed {url} listed no products")
    return refs


# ── JSON endpoint ────────────────────────────────────────


def _iter_json_listings(data: Any) -> list[dict[str, Any]]:
    """Listings from ``results``, ``listings`` or ``sections[].listings``."""
    if isinstance(data, list):
        return [d for d in data if isinstance(d, dict)]
    if not isinstance(data, dict):
        return []
    for key in ("results", "listings"):
        if isinstance(data.get(key), list):
            return [d for d in data[key] if isinstance(d, dict)]
    listings: list[dict[str, Any]] = []
    for section in data.get("sections") or []:
        if isinstance(section, dict):
            listings.extend(_iter_json_listings(section.get("listings")))
    return listings


def _json_image(entry: dict[str, Any]) -> str | None:
    images = entry.get("images")
    if isinstance(images, list) and images and isinstance(images[0], dict):
        for key in ("url_fullxfull", "url_570xN", "url"):
            value = images[0].get(key)
            if isinstance(value, str) and value:
                return value
    image = entry.get("image_url") or entry.get("image")
    return image if isinstance(image, str) and image else None


def parse_listings_json(payload: str, settings: Settings) -> list[ListingRef]:
    """Parse a sections/listings JSON object into listing refs."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise DiscoveryError(f"Listings endpoint returned bad JSON: {exc}") from exc

    refs: list[ListingRef] = []
    for entry in _iter_json_listings(data):
        raw_url = entry.get("url")
        url = strip_query(raw_url) if isinstance(raw_url, str) else ""
        listing_id = extract_listing_id(url) or str(
            entry.get("listing_id") or ""
        ).strip()
        if not listing_id.isdigit():
            continue
        if not url:
            url = settings.LISTING_URL_TEMPLATE.format(listing_id=listing_id)
        refs.append(
            ListingRef(
                url=url,
                listing_id=listing_id,
                title=str(entry.get("title") or ""),
                description=str(entry.get("description") or ""),
                image_url=_json_image(entry),
            )
        )
    return _dedupe(refs)


async def discover_from_json(
    fetcher: TextFetcher, settings: Settings,
) -> list[ListingRef]:
    url = settings.LISTINGS_API_URL
    logger.info("Fetching listings endpoint: %s", url)
    try:
        payload = await fetcher.fetch_text(url, accept="application/json")
    except FetchError as exc:
        raise DiscoveryError(f"Listings endpoint unreachable: {exc}") from exc
    refs = parse_listings_json(payload, settings)
    if not refs:
        raise DiscoveryError(f"Listings endpoint {url} returned no products")
    return refs


# ── Rendered shop pages ──────────────────────────────────


def shop_page_url(shop_url: str, page: int) -> str:
    separator = "&" if "?" in shop_url else "?"
    return f"{shop_url}{separator}page={page}"


async def discover_from_shop(
    browser: LinkCollector, settings: Settings,
) -> list[ListingRef]:
    """Walk shop index pages until one adds nothing new or the cap hits."""
    found: dict[str, str] = {}
    for page in range(1, settings.MAX_SHOP_PAGES + 1):
        url = shop_page_url(settings.SHOP_URL, page)
        logger.info("Rendering shop page %d: %s", page, url)
        try:
            hrefs = await browser.collect_links(
                url, settings.LISTING_PATH_MARKER
            )
        except FetchError as exc:
            raise DiscoveryError(f"Shop page unreachable: {exc}") from exc

        new = 0
        for href in hrefs:
            clean = strip_query(href)
            listing_id = extract_listing_id(clean)
            if listing_id and listing_id not in found:
                found[listing_id] = clean
                new += 1
        logger.info("Shop page %d yielded %d new listings", page, new)
        if new == 0:
            break

    if not found:
        raise DiscoveryError(f"Shop {settings.SHOP_URL} showed no listings")
    return [
        ListingRef(url=url, listing_id=listing_id)
        for listing_id, url in found.items()
    ]
