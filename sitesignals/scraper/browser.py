"""Browser management with Playwright and stealth measures."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    TimeoutError as PlaywrightTimeout,
)
from playwright_stealth import Stealth
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from ..config import CrawlerConfig

# Initialize stealth configuration
stealth = Stealth(
    navigator_platform_override="MacIntel",
    navigator_languages_override=("en-US", "en"),
)

logger = logging.getLogger(__name__)

# Resolved href of every anchor in the DOM
ANCHOR_HREFS_JS = "els => els.map(a => a.href)"


class RendererError(Exception):
    """Raised when the browser cannot be started. Fatal for a crawl run."""


class PageSession:
    """
    One isolated browser page, used by a single page operation.

    Wraps a Playwright page and the context it lives in; close() releases both.
    """

    def __init__(self, page: Page, context: BrowserContext, config: CrawlerConfig):
        self.page = page
        self.context = context
        self.config = config
        self._closed = False

    async def navigate(self, url: str) -> None:
        """Load url. Raises on navigation failure or timeout."""
        response = await self.page.goto(
            url,
            wait_until="load",
            timeout=self.config.navigation_timeout,
        )
        if response is not None:
            logger.debug("Loaded %s (HTTP %s)", url, response.status)

    async def settle(self) -> None:
        """Give client-side scripts time to finish rendering."""
        if self.config.readiness == "fixed":
            await asyncio.sleep(self.config.settle_delay / 1000)
            return

        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.config.settle_delay)
        except PlaywrightTimeout:
            # Network never went quiet within the settle bound; read the page as is
            logger.debug("Network not idle after %d ms: %s", self.config.settle_delay, self.page.url)

    async def rendered_html(self) -> str:
        return await self.page.content()

    async def anchor_hrefs(self) -> list[str]:
        hrefs = await self.page.eval_on_selector_all("a", ANCHOR_HREFS_JS)
        return [h for h in hrefs or [] if isinstance(h, str)]

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self.page.close()
        finally:
            await self.context.close()


class BrowserManager:
    """Manages the single browser instance shared by a crawl run."""

    def __init__(self, config: Optional[CrawlerConfig] = None):
        self.config = config or CrawlerConfig()
        self._playwright = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Start the browser, retrying the launch before giving up."""
        if self._browser:
            return

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.launch_attempts),
                wait=wait_exponential(multiplier=1, min=1, max=10),
                reraise=True,
            ):
                with attempt:
                    await self._launch()
        except Exception as e:
            await self.close()
            raise RendererError(
                f"Failed to start browser: {e}. "
                "Is Chromium installed? Run: playwright install chromium"
            ) from e

        logger.debug("Browser started (headless=%s)", self.config.headless)

    async def _launch(self) -> None:
        if not self._playwright:
            self._playwright = await async_playwright().start()

        self._browser = await self._playwright.chromium.launch(
            headless=self.config.headless,
            args=[
                "--disable-blink-features=AutomationControlled",
                "--disable-dev-shm-usage",
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-infobars",
                f"--window-size={self.config.viewport_width},{self.config.viewport_height}",
            ],
        )

    async def close(self) -> None:
        """Close the browser."""
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
        logger.debug("Browser closed")

    @asynccontextmanager
    async def new_page_session(self):
        """Open an isolated page; it is closed on exit, including on error."""
        if not self._browser:
            await self.start()

        context = await self._browser.new_context(
            viewport=self.config.viewport,
            user_agent=self.config.user_agent,
            locale="en-US",
        )
        try:
            page = await context.new_page()
            if self.config.stealth:
                await stealth.apply_stealth_async(page)
            page.set_default_timeout(self.config.navigation_timeout)
        except BaseException:
            await context.close()
            raise

        session = PageSession(page, context, self.config)
        try:
            yield session
        finally:
            await session.close()

    async def test_connection(self, url: str = "https://example.com") -> bool:
        """Test that the browser can start and render a page."""
        try:
            async with self.new_page_session() as session:
                await session.navigate(url)
                html = await session.rendered_html()
                return bool(html)
        except RendererError:
            raise
        except Exception as e:
            logger.error("Browser connection test failed: %s", e)
            return False
