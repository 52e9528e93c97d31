# src/services/site_builder.py

"""Orchestrates discovery, scraping, image caching and page generation."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.listing import ListingRef, ScrapeOutcome, partition_outcomes
from src.models.product import Product
from src.render.pages import (
    CATEGORIES,
    product_path,
    render_category_page,
    render_home_page,
    render_product_page,
    render_shop_page,
)
from src.render.sitemap import render_sitemap
from src.scrapers.browser import BrowserSession
from src.scrapers.discovery import (
    discover_from_json,
    discover_from_rss,
    discover_from_shop,
)
from src.scrapers.errors import BuildError, DiscoveryError
from src.scrapers.http_client import HttpFetcher
from src.scrapers.listing_scraper import (
    BrowserPageSource,
    HttpPageSource,
    ListingScraper,
    PageSource,
)
from src.storage.file_manager import FileManager
from src.storage.image_store import ImageMaterializer

logger = logging.getLogger("charmed_site.builder")

ProgressCallback = Callable[[str], None]


@dataclass
class BuildReport:
    """Everything a completed build produced."""

    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    failures: list[ScrapeOutcome] = field(
        default_factory=lambda: list[ScrapeOutcome]()
    )
    pages_written: list[Path] = field(
        default_factory=lambda: list[Path]()
    )
    snapshot_path: Path | None = None
    discovered_count: int = 0
    images_downloaded: int = 0
    images_cached: int = 0
    images_missing: int = 0


def dedupe_slugs(
    products: list[Product],
) -> tuple[list[Product], list[ScrapeOutcome]]:
    """Keep the first product per slug; later ones become failures."""
    seen: set[str] = set()
    kept: list[Product] = []
    dropped: list[ScrapeOutcome] = []
    for product in products:
        if product.slug in seen:
            logger.warning(
                "Duplicate slug %s from %s, dropping",
                product.slug,
                product.source_url,
            )
            dropped.append(
                ScrapeOutcome.failure(
                    product.source_url, f"duplicate slug {product.slug}"
                )
            )
            continue
        seen.add(product.slug)
        kept.append(product)
    return kept, dropped


class SiteBuilder:
    """Runs the whole build, one network operation at a time.

    Collaborators may be injected; anything not supplied is created
    for the run and closed when the run ends.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: Any | None = None,
        browser: Any | None = None,
        materializer: ImageMaterializer | None = None,
        file_manager: FileManager | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.settings = settings
        self._fetcher = fetcher
        self._browser = browser
        self._materializer = materializer
        self._file_manager = file_manager
        self._progress = progress or (lambda _msg: None)

    def _needs_browser(self) -> bool:
        return (
            self.settings.SCRAPE_MODE == "browser"
            or self.settings.DISCOVERY_SOURCE == "shop"
        )

    # ── Steps ────────────────────────────────────────────

    async def discover(self, fetcher: Any, browser: Any) -> list[ListingRef]:
        source = self.settings.DISCOVERY_SOURCE
        if source == "rss":
            refs = await discover_from_rss(fetcher, self.settings)
        elif source == "json":
            refs = await discover_from_json(fetcher, self.settings)
        else:
            refs = await discover_from_shop(browser, self.settings)
        if not refs:
            raise DiscoveryError(f"No listings discovered via {source}")
        return refs

    def _page_source(self, fetcher: Any, browser: Any) -> PageSource | None:
        mode = self.settings.SCRAPE_MODE
        if mode == "http":
            return HttpPageSource(fetcher)
        if mode == "browser":
            return BrowserPageSource(browser)
        return None

    async def scrape_all(
        self, refs: list[ListingRef], page_source: PageSource | None,
    ) -> list[ScrapeOutcome]:
        scraper = ListingScraper(self.settings, page_source)
        outcomes: list[ScrapeOutcome] = []
        for index, ref in enumerate(refs, 1):
            if page_source is not None and index > 1:
                await asyncio.sleep(self.settings.REQUEST_DELAY)
            outcome = await scraper.scrape_outcome(ref)
            if outcome.ok:
                self._progress(f"[{index}/{len(refs)}] scraped {ref.url}")
            else:
                self._progress(
                    f"[{index}/{len(refs)}] dropped {ref.url}: {outcome.error}"
                )
            outcomes.append(outcome)
        return outcomes

    async def attach_images(
        self, products: list[Product], materializer: ImageMaterializer,
    ) -> None:
        for product in products:
            await materializer.attach(product)
            self._progress(f"image {product.slug} -> {product.image_local_path}")

    def write_pages(
        self, products: list[Product], file_manager: FileManager,
    ) -> list[Path]:
        written: list[Path] = []
        for product in products:
            written.append(
                file_manager.write_text(
                    product_path(product),
                    render_product_page(product, self.settings),
                )
            )
        for category in CATEGORIES.values():
            written.append(
                file_manager.write_text(
                    category.path,
                    render_category_page(category, products, self.settings),
                )
            )
        written.append(
            file_manager.write_text(
                "shop.html", render_shop_page(products, self.settings)
            )
        )
        written.append(
            file_manager.write_text(
                "index.html", render_home_page(products, self.settings)
            )
        )
        written.append(
            file_manager.write_text(
                "sitemap.xml", render_sitemap(products, self.settings)
            )
        )
        return written

    # ── Entry point ──────────────────────────────────────

    async def build(self) -> BuildReport:
        """Run every step; raises DiscoveryError/BuildError when fatal."""
        report = BuildReport()
        async with AsyncExitStack() as stack:
            fetcher = self._fetcher
            if fetcher is None:
                fetcher = HttpFetcher(self.settings)
                stack.push_async_callback(fetcher.close)
            browser = self._browser
            if browser is None and self._needs_browser():
                browser = await stack.enter_async_context(
                    BrowserSession(self.settings)
                )

            self._progress(f"Discovering listings ({self.settings.DISCOVERY_SOURCE})")
            refs = await self.discover(fetcher, browser)
            report.discovered_count = len(refs)
            self._progress(f"Discovered {len(refs)} listings")

            self._progress(f"Scraping listings ({self.settings.SCRAPE_MODE})")
            outcomes = await self.scrape_all(
                refs, self._page_source(fetcher, browser)
            )

        products, failures = partition_outcomes(outcomes)
        products, duplicates = dedupe_slugs(products)
        report.failures = failures + duplicates
        if not products:
            raise BuildError(
                f"No products scraped from {len(refs)} listings"
            )
        report.products = products

        materializer = self._materializer
        async with AsyncExitStack() as stack:
            if materializer is None:
                materializer = ImageMaterializer(self.settings)
                stack.push_async_callback(materializer.close)
            self._progress("Materialising images")
            await self.attach_images(products, materializer)
        report.images_downloaded = materializer.downloaded
        report.images_cached = materializer.cached
        report.images_missing = materializer.missing

        file_manager = self._file_manager or FileManager(self.settings)
        report.snapshot_path = file_manager.save_products(products)
        self._progress(f"Saved {report.snapshot_path}")

        report.pages_written = self.write_pages(products, file_manager)
        logger.info(
            "Build complete: %d products, %d failures, %d pages",
            len(products),
            len(report.failures),
            len(report.pages_written),
        )
        return report
