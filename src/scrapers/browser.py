# src/scrapers/browser.py

"""Headless Chromium session for JavaScript-rendered shop pages."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from src.config.settings import Settings
from src.scrapers.errors import FetchError

_COLLECT_ANCHORS_JS = """
(marker) => Array.from(document.querySelectorAll('a[href]'))
    .map((a) => a.href)
    .filter((href) => href.includes(marker))
"""

_SCROLL_JS = "() => window.scrollBy(0, window.innerHeight)"


class BrowserSession:
    """One Chromium process per build, one page per navigation.

    Use as an async context manager. Every page opened through
    :meth:`page` is closed on exit, including when navigation raises.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.logger = logging.getLogger("charmed_site.browser")
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def start(self) -> None:
        if self._browser is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=True,
            args=["--no-sandbox", "--disable-setuid-sandbox"],
        )
        self.logger.info("Headless browser launched")

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self.logger.info("Headless browser closed")

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open an emulated desktop page and always close it afterwards."""
        if self._browser is None:
            raise RuntimeError("BrowserSession used before start()")
        width, height = self.settings.VIEWPORT
        page = await self._browser.new_page(
            viewport={"width": width, "height": height},
            user_agent=self.settings.USER_AGENT,
        )
        try:
            await page.set_extra_http_headers({
                key: value
                for key, value in self.settings.DEFAULT_HEADERS.items()
                if key.lower().startswith("sec-ch-")
                or key == "Accept-Language"
            })
            yield page
        finally:
            await page.close()

    async def _goto(self, page: Page, url: str) -> None:
        try:
            resp: Any = await page.goto(
                url,
                wait_until="networkidle",
                timeout=self.settings.NAVIGATION_TIMEOUT_MS,
            )
        except PlaywrightError as exc:
            raise FetchError(url, str(exc)) from exc
        if resp is not None and not resp.ok:
            raise FetchError(url, f"HTTP {resp.status}", resp.status)

    async def render_html(self, url: str) -> str:
        """Navigate, scroll to trigger lazy images, return the DOM HTML."""
        async with self.page() as page:
            await self._goto(page, url)
            for _ in range(self.settings.SCROLL_STEPS):
                await page.evaluate(_SCROLL_JS)
                await page.wait_for_timeout(self.settings.SCROLL_PAUSE_MS)
            html: str = await page.content()
            return html

    async def collect_links(self, url: str, marker: str) -> list[str]:
        """Hrefs of every anchor whose URL contains *marker*."""
        async with self.page() as page:
            await self._goto(page, url)
            hrefs: list[str] = await page.evaluate(_COLLECT_ANCHORS_JS, marker)
            return hrefs
