# src/scrapers/errors.py

"""Exception types raised by the build pipeline."""


class SiteBuildError(Exception):
    """Base class for every build pipeline error."""


class FetchError(SiteBuildError):
    """A text fetch failed (non-2xx status, timeout or transport error)."""

    def __init__(
        self, url: str, reason: str, status: int | None = None,
    ) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class DiscoveryError(SiteBuildError):
    """Listing discovery failed; the build cannot continue."""


class DownloadError(SiteBuildError):
    """An image download failed."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class BuildError(SiteBuildError):
    """The build produced nothing worth publishing."""
