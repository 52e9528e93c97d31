# src/config/settings.py

"""Central configuration for the charmed_site static builder."""

import dataclasses
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()

DISCOVERY_SOURCES: tuple[str, ...] = ("rss", "shop", "json")
SCRAPE_MODES: tuple[str, ...] = ("rss", "http", "browser")

_BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent

_DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
)


def _default_headers() -> dict[str, str]:
    return {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-ch-ua": '"Chromium";v="123", "Not A;Brand";v="99"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
    }


@dataclass(frozen=True)
class Settings:
    """Immutable build configuration, constructed once per run."""

    # --- Site identity ---
    DOMAIN: str = "https://thecharmedcardinal.com"
    SITE_NAME: str = "The Charmed Cardinal"
    SHOP_NAME: str = "TheCharmedCardinal"
    STYLESHEET_PATH: str = "/styles.css"
    FAVICON_PATH: str = "/assets/favicon.png"

    # --- Sources ---
    SHOP_RSS_URL: str = "https://www.etsy.com/shop/thecharmedcardinal/rss"
    SHOP_URL: str = "https://www.etsy.com/shop/thecharmedcardinal"
    LISTINGS_API_URL: str = (
        "https://www.etsy.com/api/v3/ajax/shop/thecharmedcardinal/listings"
    )
    LISTING_URL_TEMPLATE: str = "https://www.etsy.com/listing/{listing_id}"
    LISTING_PATH_MARKER: str = "/listing/"
    CDN_HOST: str = "i.etsystatic.com"
    DISCOVERY_SOURCE: str = "rss"
    SCRAPE_MODE: str = "browser"

    # --- Scraping ---
    REQUEST_DELAY: float = 1.0          # Seconds between listing fetches
    REQUEST_TIMEOUT: int = 30           # Seconds before a request times out
    NAVIGATION_TIMEOUT_MS: int = 60000  # Headless navigation budget
    MAX_SHOP_PAGES: int = 10            # Pagination cap for shop discovery
    MAX_REDIRECTS: int = 5              # Image download redirect depth
    SCROLL_STEPS: int = 6               # Viewport scrolls for lazy images
    SCROLL_PAUSE_MS: int = 900
    CLOUDSCRAPER_FALLBACK: bool = True
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    USER_AGENT: str = _DESKTOP_USER_AGENT
    VIEWPORT: tuple[int, int] = (1920, 1080)
    DEFAULT_HEADERS: dict[str, str] = field(default_factory=_default_headers)

    # --- Text cleaning ---
    TITLE_MAX_LENGTH: int = 120
    DESCRIPTION_MAX_LENGTH: int = 300
    DEFAULT_TITLE: str = "Untitled"
    DEFAULT_DESCRIPTION: str = (
        "A handmade design from The Charmed Cardinal."
    )
    TITLE_SUFFIX_PATTERNS: tuple[str, ...] = (
        r"\s+[-|]\s+Etsy(\s+\w+)?\s*$",
        r"\s+by\s+TheCharmedCardinal\s*$",
        r"\s+[-|]\s+The\s+Charmed\s+Cardinal\s*$",
    )

    # --- Rendering ---
    FEATURED_COUNT: int = 6
    HOME_SHOWS_ALL: bool = False

    # --- Images ---
    PLACEHOLDER_IMAGE: str = "/assets/product-placeholder.jpg"
    REFRESH_IMAGES: bool = False

    # --- Paths ---
    BASE_DIR: Path = _BASE_DIR
    OUTPUT_ROOT: Path = _BASE_DIR / "site"
    LOGS_DIR: Path = _BASE_DIR / "logs"
    DATA_FILE: str = "data/products.json"
    PRODUCTS_DIR: str = "products"
    ASSET_DIR: str = "assets/products"

    def __post_init__(self) -> None:
        if self.DISCOVERY_SOURCE not in DISCOVERY_SOURCES:
            raise ValueError(
                f"Unknown discovery source: {self.DISCOVERY_SOURCE!r} "
                f"(expected one of {', '.join(DISCOVERY_SOURCES)})"
            )
        if self.SCRAPE_MODE not in SCRAPE_MODES:
            raise ValueError(
                f"Unknown scrape mode: {self.SCRAPE_MODE!r} "
                f"(expected one of {', '.join(SCRAPE_MODES)})"
            )

    @property
    def asset_dir(self) -> Path:
        """Absolute directory holding downloaded product images."""
        return self.OUTPUT_ROOT / self.ASSET_DIR

    @property
    def asset_web_prefix(self) -> str:
        """Web-relative prefix for downloaded product images."""
        return "/" + self.ASSET_DIR.strip("/")

    def absolute_url(self, web_path: str) -> str:
        """Prefix a web-relative path with the site domain."""
        if web_path.startswith(("http://", "https://")):
            return web_path
        return self.DOMAIN.rstrip("/") + "/" + web_path.lstrip("/")

    def with_overrides(self, **changes: Any) -> "Settings":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from defaults plus ``CHARMED_*`` overrides."""
        env_map: dict[str, str] = {
            "CHARMED_DOMAIN": "DOMAIN",
            "CHARMED_RSS_URL": "SHOP_RSS_URL",
            "CHARMED_SHOP_URL": "SHOP_URL",
            "CHARMED_DISCOVERY": "DISCOVERY_SOURCE",
            "CHARMED_SCRAPE_MODE": "SCRAPE_MODE",
        }
        overrides: dict[str, Any] = {
            attr: os.environ[var]
            for var, attr in env_map.items()
            if os.environ.get(var)
        }
        output_root = os.environ.get("CHARMED_OUTPUT_ROOT")
        if output_root:
            overrides["OUTPUT_ROOT"] = Path(output_root)
        return cls(**overrides)
