"""
Programmatic API for the site signals crawler.

Usage:
    from sitesignals import crawl

    results = crawl(["https://example.com/"], batch_size=3)
    for site, result in results.items():
        print(site, sorted(result.emails))
"""

import asyncio
import logging
from typing import Iterable, Optional

from sitesignals.config import CrawlerConfig, load_config
from sitesignals.models import SiteResult
from sitesignals.scraper import crawl_sites

logger = logging.getLogger(__name__)


def crawl(
    sites: Optional[Iterable[str]] = None,
    config_path: Optional[str] = None,
    **overrides,
) -> dict[str, SiteResult]:
    """
    Crawl sites and return their contact signals.

    Args:
        sites: Site base URLs (defaults to the sites in the config)
        config_path: Optional YAML config file
        **overrides: Any CrawlerConfig field, e.g. batch_size=3, headless=False

    Returns:
        Mapping of site base URL to SiteResult, in input order

    Raises:
        ConfigError: If the settings are invalid
        RendererError: If the browser cannot be started
    """
    config: CrawlerConfig = load_config(config_path, **overrides)
    targets = list(sites) if sites is not None else list(config.sites)

    if not targets:
        logger.warning("No sites to crawl")
        return {}

    return asyncio.run(crawl_sites(targets, config))
