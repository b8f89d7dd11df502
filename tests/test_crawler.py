"""Tests for the page processor, site crawler and batch orchestrator."""

import logging

import pytest

from sitesignals.config import CrawlerConfig
from sitesignals.scraper import crawler as crawler_module
from sitesignals.scraper.browser import RendererError
from sitesignals.scraper.crawler import SiteCrawler, chunked, crawl_sites

from conftest import FakeBrowser

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)

SITE = "https://biz.com/"


def site_with_links(count: int, failing: tuple = ()) -> dict:
    """Entry page linking to /p0 ... /p<count-1>, each page with its own email."""
    hrefs = [f"/p{i}" for i in range(count)]
    pages = {SITE: ("<p>Home</p>", hrefs)}
    for i in range(count):
        url = f"{SITE}p{i}"
        if i in failing:
            pages[url] = TimeoutError(f"Timeout 30000ms exceeded navigating to {url}")
        else:
            pages[url] = (f"<p>page{i}@biz.com</p>", [])
    return pages


class TestChunked:
    """Test batch partitioning."""

    def test_twelve_links_in_batches_of_five(self):
        batches = list(chunked(list(range(12)), 5))
        assert [len(b) for b in batches] == [5, 5, 2]
        assert batches[0] == [0, 1, 2, 3, 4]

    def test_exact_multiple(self):
        assert [len(b) for b in chunked(list(range(10)), 5)] == [5, 5]

    def test_empty(self):
        assert list(chunked([], 5)) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            list(chunked([1, 2], 0))


class TestProcessPage:
    """Test single page processing and its failure path."""

    @pytest.mark.asyncio
    async def test_extracts_signals(self, fast_config, single_page_site):
        browser = FakeBrowser(single_page_site)
        result = await SiteCrawler(browser, fast_config).process_page(SITE)

        assert result.ok
        assert result.emails == {"contact@biz.com"}
        assert result.links == []

    @pytest.mark.asyncio
    async def test_harvests_links_for_entry_page(self, fast_config):
        browser = FakeBrowser({SITE: ("", ["/menu", "https://other.com/", "/menu"])})
        result = await SiteCrawler(browser, fast_config).process_page(SITE, harvest_from=SITE)

        assert result.links == ["https://biz.com/menu"]

    @pytest.mark.asyncio
    async def test_navigation_failure_returns_empty_result(self, fast_config, caplog):
        browser = FakeBrowser({})

        with caplog.at_level(logging.ERROR):
            result = await SiteCrawler(browser, fast_config).process_page("https://down.biz/")

        assert not result.ok
        assert "ERR_NAME_NOT_RESOLVED" in result.error
        assert result.emails == set()
        assert result.social_media == set()
        assert result.phone_numbers == set()
        assert "Error processing https://down.biz/" in caplog.text

    @pytest.mark.asyncio
    async def test_extraction_failure_returns_empty_result(self, fast_config, single_page_site, monkeypatch):
        def broken(*args, **kwargs):
            raise ValueError("bad page")

        monkeypatch.setattr(crawler_module, "extract_signals", broken)
        browser = FakeBrowser(single_page_site)
        result = await SiteCrawler(browser, fast_config).process_page(SITE)

        assert result.error == "bad page"

    @pytest.mark.asyncio
    async def test_session_released_on_failure(self, fast_config):
        browser = FakeBrowser({SITE: RuntimeError("renderer crashed")})
        await SiteCrawler(browser, fast_config).process_page(SITE)

        assert browser.sessions and all(s.closed for s in browser.sessions)
        assert browser.active == 0

    @pytest.mark.asyncio
    async def test_renderer_error_propagates(self, fast_config):
        browser = FakeBrowser({SITE: RendererError("browser failed to start")})

        with pytest.raises(RendererError):
            await SiteCrawler(browser, fast_config).process_page(SITE)


class TestCrawlSite:
    """Test entry page handling, batching and merging for one site."""

    @pytest.mark.asyncio
    async def test_single_page_site(self, fast_config, single_page_site):
        """The entry page's own signals make up the whole site result."""
        browser = FakeBrowser(single_page_site)
        result = await SiteCrawler(browser, fast_config).crawl_site(SITE)

        assert result.emails == {"contact@biz.com"}
        assert result.social_media == {"Facebook: https://facebook.com/biz"}
        assert result.phone_numbers == {"555-123-4567"}
        assert result.pages_crawled == 1
        assert result.pages_failed == 0

    @pytest.mark.asyncio
    async def test_entry_page_excluded_when_disabled(self, single_page_site):
        config = CrawlerConfig(settle_delay=0, batch_delay=0, site_delay=0, include_entry_page=False)
        browser = FakeBrowser(single_page_site)
        result = await SiteCrawler(browser, config).crawl_site(SITE)

        assert result.is_empty
        assert browser.navigations == [SITE]

    @pytest.mark.asyncio
    async def test_self_link_captures_entry_page_when_disabled(self):
        """Without entry page signals, a link back to the entry page still captures them."""
        pages = {SITE: ("<p>contact@biz.com</p>", [SITE])}
        config = CrawlerConfig(settle_delay=0, batch_delay=0, site_delay=0, include_entry_page=False)
        browser = FakeBrowser(pages)
        result = await SiteCrawler(browser, config).crawl_site(SITE)

        assert result.emails == {"contact@biz.com"}
        assert browser.navigations == [SITE, SITE]

    @pytest.mark.asyncio
    async def test_entry_page_not_rendered_twice(self, fast_config):
        pages = {SITE: ("<p>contact@biz.com</p>", [SITE, "/menu"]), f"{SITE}menu": ("", [])}
        browser = FakeBrowser(pages)
        await SiteCrawler(browser, fast_config).crawl_site(SITE)

        assert browser.navigations == [SITE, f"{SITE}menu"]

    @pytest.mark.asyncio
    async def test_batches_of_five_in_sequence(self, fast_config, monkeypatch):
        """12 links are processed as batches of 5, 5 and 2, one after another."""
        browser = FakeBrowser(site_with_links(12))
        crawler = SiteCrawler(browser, fast_config)
        batches = []
        original = crawler.process_batch

        async def recording(urls):
            batches.append(list(urls))
            assert browser.active == 0  # previous batch fully joined
            return await original(urls)

        monkeypatch.setattr(crawler, "process_batch", recording)
        result = await crawler.crawl_site(SITE)

        assert [len(b) for b in batches] == [5, 5, 2]
        assert batches[0][0] == f"{SITE}p0"
        assert batches[2] == [f"{SITE}p10", f"{SITE}p11"]
        assert browser.max_active == 5
        assert result.emails == {f"page{i}@biz.com" for i in range(12)}
        assert result.pages_crawled == 13

    @pytest.mark.asyncio
    async def test_batch_delay_between_batches_only(self, monkeypatch):
        config = CrawlerConfig(settle_delay=0, batch_delay=1500, site_delay=0)
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(crawler_module.asyncio, "sleep", fake_sleep)
        browser = FakeBrowser(site_with_links(12))
        await SiteCrawler(browser, config).crawl_site(SITE)

        # Zero-length sleeps come from the fake renderer yielding control
        assert [s for s in sleeps if s] == [1.5, 1.5]

    @pytest.mark.asyncio
    async def test_failed_page_does_not_spoil_batch(self, fast_config, caplog):
        """One page failing leaves the rest of its batch intact."""
        browser = FakeBrowser(site_with_links(5, failing=(2,)))

        with caplog.at_level(logging.ERROR):
            result = await SiteCrawler(browser, fast_config).crawl_site(SITE)

        assert result.emails == {f"page{i}@biz.com" for i in (0, 1, 3, 4)}
        assert result.pages_failed == 1
        assert result.errors == [f"{SITE}p2: Timeout 30000ms exceeded navigating to {SITE}p2"]
        assert f"Error processing {SITE}p2" in caplog.text

    @pytest.mark.asyncio
    async def test_entry_page_failure(self, fast_config):
        browser = FakeBrowser({})
        result = await SiteCrawler(browser, fast_config).crawl_site(SITE)

        assert result.is_empty
        assert result.pages_failed == 1
        assert browser.navigations == [SITE]

    @pytest.mark.asyncio
    async def test_max_pages(self):
        config = CrawlerConfig(settle_delay=0, batch_delay=0, site_delay=0, max_pages=3)
        browser = FakeBrowser(site_with_links(12))
        result = await SiteCrawler(browser, config).crawl_site(SITE)

        assert len(browser.navigations) == 4
        assert result.emails == {f"page{i}@biz.com" for i in range(3)}


class TestCrawlSites:
    """Test the multi-site orchestrator."""

    @pytest.mark.asyncio
    async def test_sites_in_input_order(self, fast_config):
        pages = {
            "https://b.com/": ("<p>hi@b.com</p>", []),
            "https://a.com/": ("<p>hi@a.com</p>", []),
        }
        browser = FakeBrowser(pages)
        done = []

        results = await crawl_sites(
            ["https://b.com/", "https://a.com/"],
            fast_config,
            browser=browser,
            on_site_done=lambda site, result: done.append(site),
        )

        assert list(results) == ["https://b.com/", "https://a.com/"]
        assert results["https://a.com/"].emails == {"hi@a.com"}
        assert done == ["https://b.com/", "https://a.com/"]

    @pytest.mark.asyncio
    async def test_duplicate_sites_crawled_once(self, fast_config, single_page_site):
        browser = FakeBrowser(single_page_site)
        results = await crawl_sites([SITE, SITE], fast_config, browser=browser)

        assert list(results) == [SITE]
        assert browser.navigations == [SITE]

    @pytest.mark.asyncio
    async def test_failing_site_still_reported(self, fast_config, single_page_site):
        browser = FakeBrowser(single_page_site)
        results = await crawl_sites(["https://down.biz/", SITE], fast_config, browser=browser)

        assert results["https://down.biz/"].is_empty
        assert results["https://down.biz/"].pages_failed == 1
        assert results[SITE].emails == {"contact@biz.com"}

    @pytest.mark.asyncio
    async def test_renderer_start_failure_is_fatal(self, fast_config, monkeypatch):
        class BrokenBrowser:
            def __init__(self, config):
                pass

            async def start(self):
                raise RendererError("Failed to start browser")

        monkeypatch.setattr(crawler_module, "BrowserManager", BrokenBrowser)

        with pytest.raises(RendererError):
            await crawl_sites([SITE], fast_config)

    @pytest.mark.asyncio
    async def test_owned_browser_closed(self, fast_config, single_page_site, monkeypatch):
        fake = FakeBrowser(single_page_site)
        events = []

        class OwnedBrowser:
            def __init__(self, config):
                pass

            async def start(self):
                events.append("start")

            async def close(self):
                events.append("close")

            def new_page_session(self):
                return fake.new_page_session()

        monkeypatch.setattr(crawler_module, "BrowserManager", OwnedBrowser)
        results = await crawl_sites([SITE], fast_config)

        assert events == ["start", "close"]
        assert results[SITE].emails == {"contact@biz.com"}
