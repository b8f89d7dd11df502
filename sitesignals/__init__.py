"""
Site Signals - contact discovery for business websites.

Crawls each site's entry page and its same-site navigation links in a
headless browser, and collects emails, phone numbers and social media
profiles from the rendered pages.

CLI Usage:
    sitesignals crawl https://example.com/ https://example.org/
    sitesignals crawl --sites-file sites.txt -f json -q | jq '.'
    sitesignals check

Library Usage:
    from sitesignals import crawl

    results = crawl(["https://example.com/"])

    for site, r in results.items():
        print(f"{site}: {len(r.emails)} emails")
"""

__version__ = "1.0.0"

VERSION_INFO = {
    "major": 1,
    "minor": 0,
    "patch": 0,
    "release": "stable",  # stable, beta, alpha
}


def get_version() -> str:
    """Get full version string."""
    version = f"{VERSION_INFO['major']}.{VERSION_INFO['minor']}.{VERSION_INFO['patch']}"
    if VERSION_INFO["release"] != "stable":
        version += f"-{VERSION_INFO['release']}"
    return version


from sitesignals.api import crawl
from sitesignals.models import PageResult, SiteResult

__all__ = ["crawl", "PageResult", "SiteResult", "__version__", "get_version", "VERSION_INFO"]
