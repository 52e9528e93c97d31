# src/scrapers/listing_scraper.py

"""Per-listing metadata scraping with a cascading fallback chain."""

import logging
from typing import Protocol

from bs4 import BeautifulSoup

from src.config.settings import Settings
from src.models.listing import ListingRef, ScrapeOutcome
from src.models.product import Product
from src.scrapers.extractors import resolve_fields, run_extractors
from src.scrapers.normalizers import (
    clean_description,
    clean_title,
    infer_type,
    listing_id_or_timestamp,
    make_slug,
    strip_query,
)


class PageSource(Protocol):
    """Anything that can turn a listing URL into page HTML."""

    async def fetch_html(self, url: str) -> str: ...


class TextFetcher(Protocol):
    async def fetch_text(self, url: str, accept: str | None = None) -> str: ...


class HtmlRenderer(Protocol):
    async def render_html(self, url: str) -> str: ...


class HttpPageSource:
    """Plain HTTP page source backed by an :class:`HttpFetcher`."""

    def __init__(self, fetcher: TextFetcher) -> None:
        self.fetcher = fetcher

    async def fetch_html(self, url: str) -> str:
        return await self.fetcher.fetch_text(url)


class BrowserPageSource:
    """Headless-browser page source backed by a :class:`BrowserSession`."""

    def __init__(self, browser: HtmlRenderer) -> None:
        self.browser = browser

    async def fetch_html(self, url: str) -> str:
        return await self.browser.render_html(url)


class ListingScraper:
    """Builds a :class:`Product` (minus local image) for one listing.

    With no page source (RSS-only mode) the product is assembled from
    the discovery entry alone. Otherwise the page is fetched and every
    extractor runs; the first source supplying each field wins.
    """

    def __init__(
        self,
        settings: Settings,
        page_source: PageSource | None = None,
    ) -> None:
        self.settings = settings
        self.page_source = page_source
        self.logger = logging.getLogger("charmed_site.scraper")

    async def scrape(self, ref: ListingRef) -> Product:
        """Scrape one listing. Fetch and parse errors propagate."""
        soup: BeautifulSoup | None = None
        if self.page_source is not None:
            self.logger.info("Scraping listing page: %s", ref.url)
            html = await self.page_source.fetch_html(ref.url)
            soup = BeautifulSoup(html, "lxml")

        results = run_extractors(soup, ref, self.settings.CDN_HOST)
        fields = resolve_fields(results)

        title = clean_title(
            fields.title,
            self.settings.TITLE_SUFFIX_PATTERNS,
            self.settings.TITLE_MAX_LENGTH,
        ) or self.settings.DEFAULT_TITLE
        description = clean_description(
            fields.description, self.settings.DESCRIPTION_MAX_LENGTH
        ) or self.settings.DEFAULT_DESCRIPTION

        source_url = strip_query(ref.url)
        listing_id = ref.listing_id or listing_id_or_timestamp(source_url)

        if fields.image_url is None:
            self.logger.warning("No product image found for %s", source_url)

        return Product(
            id=listing_id,
            slug=make_slug(title, listing_id),
            title=title,
            description=description,
            type=infer_type(title, description),
            source_url=source_url,
            image_remote_url=fields.image_url,
        )

    async def scrape_outcome(self, ref: ListingRef) -> ScrapeOutcome:
        """Scrape one listing, converting any failure into an outcome."""
        try:
            product = await self.scrape(ref)
        except Exception as exc:
            self.logger.warning(
                "Dropping listing %s: %s", ref.url, exc, exc_info=True
            )
            return ScrapeOutcome.failure(
                ref.url, f"{type(exc).__name__}: {exc}"
            )
        return ScrapeOutcome.success(ref.url, product)
