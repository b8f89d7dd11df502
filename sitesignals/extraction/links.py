"""Same-site navigation link harvesting."""

import logging
from typing import Iterable, Optional
from urllib.parse import urljoin

logger = logging.getLogger(__name__)


def harvest_links(hrefs: Optional[Iterable[str]], base_url: str) -> list[str]:
    """
    Collect the links on a page that stay within the site.

    An href is kept if it starts with base_url or is site-relative
    ("/path"); site-relative hrefs are resolved against base_url.
    Protocol-relative hrefs ("//host/path") name another host and are dropped.

    Args:
        hrefs: Anchor hrefs read from the rendered page
        base_url: The site's base URL

    Returns:
        Absolute URLs, deduplicated, in first-seen order
    """
    links = []
    seen = set()

    for href in hrefs or ():
        if not isinstance(href, str) or not href:
            continue

        if href.startswith("/") and not href.startswith("//"):
            link = urljoin(base_url, href)
        elif href.startswith(base_url):
            link = href
        else:
            continue

        if link not in seen:
            seen.add(link)
            links.append(link)

    logger.debug("Harvested %d links from %s", len(links), base_url)
    return links
