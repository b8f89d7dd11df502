"""Data models for the site signals crawler."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PageResult:
    """Contact signals extracted from a single rendered page."""

    url: str = ""
    emails: set[str] = field(default_factory=set)
    social_media: set[str] = field(default_factory=set)
    phone_numbers: set[str] = field(default_factory=set)
    links: list[str] = field(default_factory=list)  # Only harvested for entry pages
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        """True if the page rendered and was extracted without error."""
        return self.error is None

    @classmethod
    def failed(cls, url: str, error: str) -> "PageResult":
        """Build the empty result returned for a page that could not be processed."""
        return cls(url=url, error=error)


@dataclass
class SiteResult:
    """Contact signals aggregated across every processed page of one site."""

    site: str
    emails: set[str] = field(default_factory=set)
    social_media: set[str] = field(default_factory=set)
    phone_numbers: set[str] = field(default_factory=set)
    pages_crawled: int = 0
    pages_failed: int = 0
    errors: list[str] = field(default_factory=list)

    def merge(self, page: PageResult) -> None:
        """Union a page's signals into this site's sets."""
        self.emails |= page.emails
        self.social_media |= page.social_media
        self.phone_numbers |= page.phone_numbers

        if page.ok:
            self.pages_crawled += 1
        else:
            self.pages_failed += 1
            self.errors.append(f"{page.url}: {page.error}")

    @property
    def is_empty(self) -> bool:
        return not (self.emails or self.social_media or self.phone_numbers)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization (sets become sorted lists)."""
        return {
            "site": self.site,
            "emails": sorted(self.emails),
            "social_media": sorted(self.social_media),
            "phone_numbers": sorted(self.phone_numbers),
            "pages_crawled": self.pages_crawled,
            "pages_failed": self.pages_failed,
            "errors": list(self.errors),
        }
