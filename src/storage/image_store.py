# src/storage/image_store.py

"""Download-and-cache product images to deterministic local paths."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urljoin

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.product import Product
from src.scrapers.errors import DownloadError

logger = logging.getLogger("charmed_site.images")

_EXTENSIONS: tuple[tuple[str, str], ...] = (
    (".png", "png"),
    (".webp", "webp"),
    (".jpeg", "jpeg"),
)


@dataclass(frozen=True)
class MaterializedImage:
    """Where a product image lives once it is on disk."""

    web_path: str
    absolute_url: str


def image_extension(url: str) -> str:
    """File extension guessed from the URL text (``jpg`` by default)."""
    lowered = url.lower()
    for marker, ext in _EXTENSIONS:
        if marker in lowered:
            return ext
    return "jpg"


class ImageMaterializer:
    """Ensures at most one local image file per product slug.

    Files are cached by name: an existing ``<slug>.<ext>`` is reused
    without touching the network unless ``REFRESH_IMAGES`` is set.
    """

    def __init__(
        self,
        settings: Settings,
        session: curl_requests.AsyncSession | None = None,
    ) -> None:
        self.settings = settings
        self.asset_dir: Path = settings.asset_dir
        self.session = session or curl_requests.AsyncSession(
            impersonate=settings.IMPERSONATE_BROWSER
        )
        self.downloaded = 0
        self.cached = 0
        self.missing = 0

    async def close(self) -> None:
        await self.session.close()

    def _describe(self, filename: str) -> MaterializedImage:
        web_path = f"{self.settings.asset_web_prefix}/{filename}"
        return MaterializedImage(
            web_path=web_path,
            absolute_url=self.settings.absolute_url(web_path),
        )

    async def materialize(self, product: Product) -> MaterializedImage | None:
        """Return the local image for *product*, downloading if needed."""
        remote = product.image_remote_url
        if not remote:
            self.missing += 1
            return None

        filename = f"{product.slug}.{image_extension(remote)}"
        dest = self.asset_dir / filename
        if dest.exists() and not self.settings.REFRESH_IMAGES:
            logger.debug("Image cache hit: %s", dest)
            self.cached += 1
            return self._describe(filename)

        self.asset_dir.mkdir(parents=True, exist_ok=True)
        try:
            await self.download(remote, dest)
        except DownloadError as exc:
            logger.warning("Image download failed for %s: %s", product.slug, exc)
            if dest.exists():
                logger.info("Keeping previously cached image %s", dest)
                self.cached += 1
                return self._describe(filename)
            self.missing += 1
            return None

        logger.info("Downloaded image %s", dest)
        self.downloaded += 1
        return self._describe(filename)

    async def attach(self, product: Product) -> Product:
        """Set ``image_local_path`` on *product* (placeholder on failure)."""
        image = await self.materialize(product)
        product.image_local_path = (
            image.web_path if image else self.settings.PLACEHOLDER_IMAGE
        )
        return product

    async def download(self, url: str, dest: Path, depth: int = 0) -> Path:
        """Stream *url* into *dest*, following redirects recursively.

        Raises :class:`DownloadError` on any non-2xx, non-redirect status,
        on a redirect without ``Location``, or past ``MAX_REDIRECTS`` hops.
        Bytes stream into a ``.part`` sibling that replaces *dest* only
        once complete, so an existing file survives a failed download.
        """
        if depth > self.settings.MAX_REDIRECTS:
            raise DownloadError(url, "too many redirects")

        try:
            resp = await self.session.get(
                url,
                headers={"Accept": "image/avif,image/webp,image/*,*/*;q=0.8"},
                timeout=self.settings.REQUEST_TIMEOUT,
                allow_redirects=False,
                stream=True,
            )
        except Exception as exc:
            raise DownloadError(url, str(exc)) from exc

        try:
            status = int(resp.status_code)
            if 300 <= status < 400:
                location = resp.headers.get("location")
                if not location:
                    raise DownloadError(url, f"HTTP {status} without Location")
                next_url = urljoin(url, location)
                logger.debug("Following redirect %s -> %s", url, next_url)
            elif not 200 <= status < 300:
                raise DownloadError(url, f"Bad status: {status}")
            else:
                next_url = None
                await self._write_stream(resp, url, dest)
        finally:
            await resp.aclose()

        if next_url is not None:
            return await self.download(next_url, dest, depth + 1)
        return dest

    async def _write_stream(
        self, resp: curl_requests.Response, url: str, dest: Path,
    ) -> None:
        part = dest.with_name(dest.name + ".part")
        try:
            with open(part, "wb") as f:
                async for chunk in resp.aiter_content():
                    f.write(chunk)
        except Exception as exc:
            part.unlink(missing_ok=True)
            raise DownloadError(url, f"stream interrupted: {exc}") from exc
        os.replace(part, dest)
