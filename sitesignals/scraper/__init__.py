"""Rendering and crawling module."""

from .browser import BrowserManager, PageSession, RendererError
from .crawler import SiteCrawler, crawl_sites, chunked

__all__ = [
    "BrowserManager",
    "PageSession",
    "RendererError",
    "SiteCrawler",
    "crawl_sites",
    "chunked",
]
