# tests/test_image_store.py

"""Tests for ImageMaterializer caching, redirects and failure handling."""

import tempfile
import unittest
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.product import Product
from src.scrapers.errors import DownloadError
from src.storage.image_store import ImageMaterializer, image_extension


class _FakeResponse:
    """Minimal streaming response double."""

    def __init__(
        self,
        status: int,
        chunks: list[bytes] | None = None,
        headers: dict[str, str] | None = None,
        fail_midway: bool = False,
    ) -> None:
        self.status_code = status
        self.headers = headers or {}
        self._chunks = chunks or []
        self._fail_midway = fail_midway
        self.closed = False

    async def aiter_content(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            yield chunk
        if self._fail_midway:
            raise ConnectionError("connection reset")

    async def aclose(self) -> None:
        self.closed = True


class _FakeSession:
    """Returns canned responses keyed by URL and records every call."""

    def __init__(self, responses: dict[str, _FakeResponse]) -> None:
        self.responses = responses
        self.calls: list[str] = []

    async def get(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append(url)
        if url not in self.responses:
            raise ConnectionError(f"no route to {url}")
        return self.responses[url]

    async def close(self) -> None:
        pass


def _product(remote: str | None, slug: str = "owl-flag-42") -> Product:
    return Product(
        id="42",
        slug=slug,
        title="Owl Flag",
        description="",
        source_url="https://www.etsy.com/listing/42",
        image_remote_url=remote,
    )


class TestImageExtension(unittest.TestCase):
    """Extension guessing from URL text."""

    def test_known_extensions(self) -> None:
        cases = {
            "https://cdn/x.png": "png",
            "https://cdn/x.WEBP": "webp",
            "https://cdn/x.jpeg?w=1": "jpeg",
            "https://cdn/x.jpg": "jpg",
            "https://cdn/x": "jpg",
        }
        for url, ext in cases.items():
            with self.subTest(url=url):
                self.assertEqual(image_extension(url), ext)


class TestImageMaterializer(unittest.IsolatedAsyncioTestCase):
    """Download, cache and fallback behaviour."""

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.settings = Settings(OUTPUT_ROOT=self.tmp_dir)
        self.asset_dir = self.tmp_dir / "assets" / "products"

    def _materializer(
        self, session: _FakeSession, settings: Settings | None = None,
    ) -> ImageMaterializer:
        return ImageMaterializer(settings or self.settings, session=session)  # type: ignore[arg-type]

    async def test_webp_download(self) -> None:
        url = "https://i.etsystatic.com/owl.webp"
        session = _FakeSession({url: _FakeResponse(200, [b"RIFF", b"WEBP"])})
        materializer = self._materializer(session)

        image = await materializer.materialize(_product(url))

        assert image is not None
        self.assertEqual(image.web_path, "/assets/products/owl-flag-42.webp")
        self.assertEqual(
            image.absolute_url,
            "https://thecharmedcardinal.com/assets/products/owl-flag-42.webp",
        )
        dest = self.asset_dir / "owl-flag-42.webp"
        self.assertEqual(dest.read_bytes(), b"RIFFWEBP")
        self.assertTrue(session.responses[url].closed)
        self.assertEqual(materializer.downloaded, 1)

    async def test_second_call_uses_cache(self) -> None:
        url = "https://i.etsystatic.com/owl.jpg"
        session = _FakeSession({url: _FakeResponse(200, [b"jpeg"])})
        materializer = self._materializer(session)
        product = _product(url)

        first = await materializer.materialize(product)
        second = await materializer.materialize(product)

        self.assertEqual(first, second)
        self.assertEqual(session.calls, [url])
        self.assertEqual(materializer.cached, 1)

    async def test_refresh_images_bypasses_cache(self) -> None:
        url = "https://i.etsystatic.com/owl.jpg"
        session = _FakeSession({url: _FakeResponse(200, [b"jpeg"])})
        self.asset_dir.mkdir(parents=True)
        (self.asset_dir / "owl-flag-42.jpg").write_bytes(b"old")
        materializer = self._materializer(
            session, self.settings.with_overrides(REFRESH_IMAGES=True)
        )

        await materializer.materialize(_product(url))

        self.assertEqual(session.calls, [url])
        self.assertEqual((self.asset_dir / "owl-flag-42.jpg").read_bytes(), b"jpeg")

    async def test_follows_redirects(self) -> None:
        start = "https://i.etsystatic.com/start.png"
        final = "https://cdn2.example/final.png"
        session = _FakeSession({
            start: _FakeResponse(302, headers={"location": "/hop"}),
            "https://i.etsystatic.com/hop": _FakeResponse(
                301, headers={"location": final}
            ),
            final: _FakeResponse(200, [b"png"]),
        })
        image = await self._materializer(session).materialize(_product(start))
        assert image is not None
        self.assertTrue(image.web_path.endswith(".png"))
        self.assertEqual(
            session.calls, [start, "https://i.etsystatic.com/hop", final]
        )

    async def test_redirect_loop_gives_up(self) -> None:
        url = "https://i.etsystatic.com/loop.jpg"
        session = _FakeSession({
            url: _FakeResponse(302, headers={"location": url}),
        })
        materializer = self._materializer(session)
        with self.assertRaises(DownloadError):
            await materializer.download(url, self.tmp_dir / "loop.jpg")
        self.assertEqual(len(session.calls), self.settings.MAX_REDIRECTS + 1)

    async def test_redirect_without_location_fails(self) -> None:
        url = "https://i.etsystatic.com/x.jpg"
        session = _FakeSession({url: _FakeResponse(302)})
        image = await self._materializer(session).materialize(_product(url))
        self.assertIsNone(image)

    async def test_bad_status_returns_none(self) -> None:
        url = "https://i.etsystatic.com/gone.jpg"
        session = _FakeSession({url: _FakeResponse(404)})
        materializer = self._materializer(session)
        image = await materializer.materialize(_product(url))
        self.assertIsNone(image)
        self.assertFalse((self.asset_dir / "owl-flag-42.jpg").exists())
        self.assertEqual(materializer.missing, 1)

    async def test_interrupted_stream_leaves_no_partial_file(self) -> None:
        url = "https://i.etsystatic.com/broken.jpg"
        session = _FakeSession(
            {url: _FakeResponse(200, [b"half"], fail_midway=True)}
        )
        image = await self._materializer(session).materialize(_product(url))
        self.assertIsNone(image)
        self.assertFalse((self.asset_dir / "owl-flag-42.jpg").exists())

    async def test_failed_refresh_keeps_cached_image(self) -> None:
        url = "https://i.etsystatic.com/owl.jpg"
        session = _FakeSession(
            {url: _FakeResponse(200, [b"half"], fail_midway=True)}
        )
        self.asset_dir.mkdir(parents=True)
        cached = self.asset_dir / "owl-flag-42.jpg"
        cached.write_bytes(b"good")
        materializer = self._materializer(
            session, self.settings.with_overrides(REFRESH_IMAGES=True)
        )
        product = _product(url)

        await materializer.attach(product)

        self.assertEqual(session.calls, [url])
        self.assertEqual(cached.read_bytes(), b"good")
        self.assertFalse((self.asset_dir / "owl-flag-42.jpg.part").exists())
        self.assertEqual(product.image_local_path, "/assets/products/owl-flag-42.jpg")
        self.assertEqual(materializer.missing, 0)

    async def test_transport_error_returns_none(self) -> None:
        session = _FakeSession({})
        image = await self._materializer(session).materialize(
            _product("https://unreachable.example/x.jpg")
        )
        self.assertIsNone(image)

    async def test_no_remote_url(self) -> None:
        session = _FakeSession({})
        image = await self._materializer(session).materialize(_product(None))
        self.assertIsNone(image)
        self.assertEqual(session.calls, [])

    async def test_attach_sets_placeholder_on_failure(self) -> None:
        session = _FakeSession({})
        product = _product(None)
        await self._materializer(session).attach(product)
        self.assertEqual(product.image_local_path, self.settings.PLACEHOLDER_IMAGE)

    async def test_attach_sets_web_path(self) -> None:
        url = "https://i.etsystatic.com/owl.png"
        session = _FakeSession({url: _FakeResponse(200, [b"png"])})
        product = _product(url)
        await self._materializer(session).attach(product)
        self.assertEqual(product.image_local_path, "/assets/products/owl-flag-42.png")


if __name__ == "__main__":
    unittest.main()
