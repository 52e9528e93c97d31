# src/scrapers/http_client.py

"""Asynchronous text fetching with a browser-impersonating TLS stack."""

import asyncio
import logging
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.scrapers.errors import FetchError


class HttpFetcher:
    """Fetches feeds, listing pages and JSON endpoints over plain HTTP.

    The primary transport is ``curl_cffi`` impersonating a desktop
    browser. When it fails and the fallback is enabled, the request is
    retried once through ``cloudscraper`` before :class:`FetchError` is
    raised.
    """

    def __init__(
        self,
        settings: Settings,
        session: curl_requests.AsyncSession | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logging.getLogger("charmed_site.http")
        self.session = session or curl_requests.AsyncSession(
            impersonate=settings.IMPERSONATE_BROWSER
        )

    async def close(self) -> None:
        await self.session.close()

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _headers(self, accept: str | None) -> dict[str, str]:
        headers: dict[str, str] = dict(self.settings.DEFAULT_HEADERS)
        if accept:
            headers["Accept"] = accept
        return headers

    async def fetch_text(self, url: str, accept: str | None = None) -> str:
        """Return the body of a 2xx response, else raise FetchError."""
        headers = self._headers(accept)
        try:
            resp = await self.session.get(
                url,
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            self.logger.warning(
                "Request error for %s: %s", url, exc, exc_info=True
            )
            error = FetchError(url, str(exc))
        else:
            if 200 <= resp.status_code < 300:
                return str(resp.text)
            self.logger.warning("HTTP %d for %s", resp.status_code, url)
            error = FetchError(
                url, f"HTTP {resp.status_code}", resp.status_code
            )

        if not self.settings.CLOUDSCRAPER_FALLBACK:
            raise error

        self.logger.info(
            "curl_cffi failed for %s, falling back to cloudscraper", url
        )
        try:
            return await asyncio.to_thread(
                self._fetch_with_cloudscraper, url, headers
            )
        except FetchError:
            raise
        except Exception as exc:
            self.logger.error(
                "cloudscraper fallback also failed for %s: %s",
                url,
                exc,
                exc_info=True,
            )
            raise error from exc

    def _fetch_with_cloudscraper(
        self, url: str, headers: dict[str, str],
    ) -> str:
        _cs: Any = cloudscraper
        scraper: Any = _cs.create_scraper()
        resp: Any = scraper.get(
            url,
            headers=headers,
            timeout=self.settings.REQUEST_TIMEOUT,
        )
        status = int(resp.status_code)
        if not 200 <= status < 300:
            raise FetchError(url, f"HTTP {status} (cloudscraper)", status)
        return str(resp.text)
