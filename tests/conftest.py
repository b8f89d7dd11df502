"""Shared fixtures: an in-memory renderer standing in for Playwright."""

import asyncio
from contextlib import asynccontextmanager

import pytest

from sitesignals.config import CrawlerConfig


class FakeSession:
    """Page session serving canned HTML and hrefs."""

    def __init__(self, browser: "FakeBrowser"):
        self.browser = browser
        self.url = None
        self.closed = False

    async def navigate(self, url: str) -> None:
        self.browser.navigations.append(url)
        # Yield so pages in the same batch overlap
        await asyncio.sleep(0)
        page = self.browser.pages.get(url)
        if page is None:
            raise RuntimeError(f"net::ERR_NAME_NOT_RESOLVED at {url}")
        if isinstance(page, Exception):
            raise page
        self.url = url

    async def settle(self) -> None:
        await asyncio.sleep(0)

    async def rendered_html(self) -> str:
        return self.browser.pages[self.url][0]

    async def anchor_hrefs(self) -> list:
        return list(self.browser.pages[self.url][1])

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    """
    Renderer with the same shape as BrowserManager.

    pages maps url -> (html, hrefs), or url -> Exception to fail navigation.
    Unknown urls fail navigation too.
    """

    def __init__(self, pages: dict):
        self.pages = pages
        self.navigations: list[str] = []
        self.sessions: list[FakeSession] = []
        self.active = 0
        self.max_active = 0

    @asynccontextmanager
    async def new_page_session(self):
        session = FakeSession(self)
        self.sessions.append(session)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            yield session
        finally:
            self.active -= 1
            await session.close()


@pytest.fixture
def fast_config() -> CrawlerConfig:
    """Default settings with every delay removed."""
    return CrawlerConfig(settle_delay=0, batch_delay=0, site_delay=0)


@pytest.fixture
def single_page_site() -> dict:
    """A site whose entry page carries one email, one phone and one social link."""
    html = """
    <html><body>
      <h1>Biz Bistro</h1>
      <p>Email us at contact@biz.com or call 555-123-4567.</p>
      <a href="https://facebook.com/biz">Facebook</a>
    </body></html>
    """
    return {"https://biz.com/": (html, ["https://facebook.com/biz"])}
