"""Site crawler: entry page, same-site links, batched page processing."""

import asyncio
import logging
from typing import Callable, Iterable, Iterator, Optional

from ..config import CrawlerConfig
from ..extraction import extract_signals, harvest_links
from ..models import PageResult, SiteResult
from .browser import BrowserManager, RendererError

logger = logging.getLogger(__name__)

SiteCallback = Callable[[str, SiteResult], None]


def chunked(items: list, size: int) -> Iterator[list]:
    """Yield consecutive slices of items, each at most size long."""
    if size < 1:
        raise ValueError("size must be >= 1")
    for i in range(0, len(items), size):
        yield items[i:i + size]


def _same_page(a: str, b: str) -> bool:
    return a.rstrip("/") == b.rstrip("/")


class SiteCrawler:
    """
    Crawls sites through a shared renderer.

    The renderer is anything with a ``new_page_session()`` async context
    manager yielding a session with ``navigate``, ``settle``,
    ``rendered_html`` and ``anchor_hrefs`` coroutines (see BrowserManager).
    """

    def __init__(self, browser, config: Optional[CrawlerConfig] = None):
        self.browser = browser
        self.config = config or CrawlerConfig()

    async def process_page(self, url: str, harvest_from: Optional[str] = None) -> PageResult:
        """
        Render one page and extract its contact signals.

        Failures are logged and returned as a failed PageResult, so one bad
        page never aborts a batch. Only RendererError propagates.

        Args:
            url: Page to render
            harvest_from: Site base URL; when given, same-site links are
                harvested into PageResult.links

        Returns:
            PageResult (with error set if the page could not be processed)
        """
        try:
            async with self.browser.new_page_session() as session:
                await session.navigate(url)
                await session.settle()
                html = await session.rendered_html()
                hrefs = await session.anchor_hrefs()

            result = extract_signals(html, hrefs, url=url)
            if harvest_from is not None:
                result.links = harvest_links(hrefs, harvest_from)

        except RendererError:
            raise
        except Exception as e:
            message = str(e).strip().splitlines()[0] if str(e).strip() else type(e).__name__
            logger.error("Error processing %s: %s", url, message)
            return PageResult.failed(url, message)

        logger.debug(
            "%s: %d emails, %d social, %d phones",
            url,
            len(result.emails),
            len(result.social_media),
            len(result.phone_numbers),
        )
        return result

    async def process_batch(self, urls: list[str]) -> list[PageResult]:
        """Process all urls concurrently and wait for every one to finish."""
        return list(await asyncio.gather(*(self.process_page(url) for url in urls)))

    async def crawl_site(self, site: str) -> SiteResult:
        """
        Crawl one site: its entry page, then its same-site links in batches.

        Args:
            site: The site's base URL (also its entry page)

        Returns:
            SiteResult aggregated over every processed page
        """
        result = SiteResult(site=site)
        logger.info("Processing: %s", site)

        entry = await self.process_page(site, harvest_from=site)
        if not entry.ok:
            result.merge(entry)
            return result

        links = entry.links
        if self.config.include_entry_page:
            result.merge(entry)
            links = [link for link in links if not _same_page(link, site)]

        if self.config.max_pages is not None:
            links = links[:self.config.max_pages]

        logger.info("%s: %d links to crawl", site, len(links))

        for i, batch in enumerate(chunked(links, self.config.batch_size)):
            if i:
                await asyncio.sleep(self.config.batch_delay / 1000)

            for page in await self.process_batch(batch):
                result.merge(page)

        logger.info(
            "%s: %d pages crawled, %d failed, %d emails, %d social, %d phones",
            site,
            result.pages_crawled,
            result.pages_failed,
            len(result.emails),
            len(result.social_media),
            len(result.phone_numbers),
        )
        return result


async def crawl_sites(
    sites: Iterable[str],
    config: Optional[CrawlerConfig] = None,
    browser=None,
    on_site_done: Optional[SiteCallback] = None,
) -> dict[str, SiteResult]:
    """
    Crawl every site in order with one shared browser.

    Args:
        sites: Site base URLs; duplicates are crawled once
        config: Crawl settings (defaults if omitted)
        browser: Renderer to use. If omitted a BrowserManager is started
            and closed here; if given, the caller owns its lifecycle.
        on_site_done: Called with (site, result) after each site

    Returns:
        Mapping of site base URL to SiteResult, in input order

    Raises:
        RendererError: If the browser cannot be started
    """
    config = config or CrawlerConfig()
    owns_browser = browser is None
    if owns_browser:
        browser = BrowserManager(config)
        await browser.start()

    crawler = SiteCrawler(browser, config)
    results: dict[str, SiteResult] = {}

    try:
        for i, site in enumerate(dict.fromkeys(sites)):
            if i:
                await asyncio.sleep(config.site_delay / 1000)

            results[site] = await crawler.crawl_site(site)

            if on_site_done:
                on_site_done(site, results[site])
    finally:
        if owns_browser:
            await browser.close()

    return results
