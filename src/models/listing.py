# src/models/listing.py

"""Discovery and scrape result models."""

from dataclasses import dataclass

from src.models.product import Product


@dataclass(frozen=True)
class ListingRef:
    """A discovered listing URL plus whatever the source told us about it.

    Feed-derived fields are only populated by RSS and JSON discovery;
    shop-page discovery yields the URL and id alone.
    """

    url: str
    listing_id: str
    title: str = ""
    description: str = ""
    content_html: str = ""
    image_url: str | None = None


@dataclass
class ScrapeOutcome:
    """Result of scraping one listing: a product or a failure reason."""

    url: str
    product: Product | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.product is not None

    @classmethod
    def success(cls, url: str, product: Product) -> "ScrapeOutcome":
        return cls(url=url, product=product)

    @classmethod
    def failure(cls, url: str, reason: str) -> "ScrapeOutcome":
        return cls(url=url, error=reason)


def partition_outcomes(
    outcomes: list[ScrapeOutcome],
) -> tuple[list[Product], list[ScrapeOutcome]]:
    """Split outcomes into products (discovery order) and failures."""
    products: list[Product] = []
    failures: list[ScrapeOutcome] = []
    for outcome in outcomes:
        if outcome.product is not None:
            products.append(outcome.product)
        else:
            failures.append(outcome)
    return products, failures
