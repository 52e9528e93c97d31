# src/scrapers/normalizers.py

"""Text cleaning, slug derivation and category inference for listings."""

import re
import time
import unicodedata
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from src.models.product import ProductType

_LISTING_ID_RE = re.compile(r"/listing/(\d+)")
_STRIP_QUERY_RE = re.compile(r"[?#].*$")
_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")
_MARKUP_RE = re.compile(
    r"<[A-Za-z/!][^>]*>|&(?:#\d+|#x[0-9A-Fa-f]+|[A-Za-z]+);"
)

ELLIPSIS = "…"
SLUG_STEM_MAX_LENGTH = 80

_PATTERN_KEYWORDS: tuple[str, ...] = ("seamless", "pattern")


def strip_query(url: str) -> str:
    """Drop query string and fragment from a URL."""
    return _STRIP_QUERY_RE.sub("", url.strip())


def extract_listing_id(url: str) -> str | None:
    """Return the numeric listing id in *url*, or ``None``."""
    match = _LISTING_ID_RE.search(url)
    return match.group(1) if match else None


def listing_id_or_timestamp(url: str) -> str:
    """Listing id from the URL, else a millisecond timestamp."""
    return extract_listing_id(url) or str(int(time.time() * 1000))


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_html(text: str) -> str:
    """Remove markup and decode entities, returning plain text."""
    if not text:
        return ""
    if "<" not in text and "&" not in text:
        return collapse_whitespace(text)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        soup = BeautifulSoup(text, "lxml")
    return collapse_whitespace(soup.get_text(" "))


def markup_to_text(text: str) -> str:
    """Plain text from a value that may or may not carry HTML.

    Only text containing a tag or an entity reference is parsed; anything
    else is returned as-is apart from whitespace, so literal angle
    brackets in already-decoded text survive.
    """
    if _MARKUP_RE.search(text or ""):
        return strip_html(text)
    return collapse_whitespace(text or "")


def clamp(text: str, max_length: int) -> str:
    """Clamp *text* to *max_length* characters with an ellipsis marker."""
    if len(text) <= max_length:
        return text
    cut = text[: max(max_length - len(ELLIPSIS), 0)].rstrip()
    # Prefer breaking on a word boundary when one is reasonably close
    space = cut.rfind(" ")
    if space > max_length // 2:
        cut = cut[:space].rstrip(" ,;:-")
    return cut + ELLIPSIS


def strip_site_suffix(title: str, patterns: tuple[str, ...]) -> str:
    """Remove trailing marketplace/shop name tails from a title."""
    cleaned = title
    for pattern in patterns:
        cleaned = re.sub(pattern, "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def clean_title(
    raw: str | None,
    suffix_patterns: tuple[str, ...],
    max_length: int,
) -> str:
    """Suffix-free, clamped title ('' when nothing usable).

    *raw* is expected to be plain text already.
    """
    text = collapse_whitespace(raw or "")
    text = strip_site_suffix(text, suffix_patterns)
    return clamp(text, max_length)


def clean_description(raw: str | None, max_length: int) -> str:
    """Clamped plain-text description ('' when nothing usable)."""
    return clamp(collapse_whitespace(raw or ""), max_length)


def slugify(text: str) -> str:
    """Lower-case ``[a-z0-9-]`` slug of *text* (may be empty)."""
    ascii_text = (
        unicodedata.normalize("NFKD", text)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = _NON_SLUG_RE.sub("-", ascii_text.lower()).strip("-")
    if len(slug) > SLUG_STEM_MAX_LENGTH:
        slug = slug[:SLUG_STEM_MAX_LENGTH].rstrip("-")
    return slug


def make_slug(title: str, listing_id: str) -> str:
    """Slug from title plus id; always ends with ``-<id>`` or is the id."""
    stem = slugify(title)
    tail = slugify(listing_id) or "listing"
    return f"{stem}-{tail}" if stem else tail


def infer_type(title: str, description: str) -> ProductType:
    """Digital pattern when the text mentions patterns, else garden flag."""
    text = f"{title} {description}".lower()
    if any(keyword in text for keyword in _PATTERN_KEYWORDS):
        return ProductType.DIGITAL_PATTERN
    return ProductType.GARDEN_FLAG
