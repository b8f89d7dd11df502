"""
Site Signals CLI

Examples:
    # Crawl a couple of sites
    sitesignals crawl https://example.com/ https://example.org/

    # Sites from a file, JSON output piped to jq
    sitesignals crawl --sites-file sites.txt -f json -q | jq '.sites[0]'

    # Sites and settings from a config file, saved as CSV
    sitesignals crawl --config configs/restaurants.yaml -o results.csv -f csv

    # Watch the browser work
    sitesignals crawl https://example.com/ --no-headless --readiness fixed

    # Check that Playwright and Chromium are installed
    sitesignals check
"""

import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from . import __version__
from .config import ConfigError, CrawlerConfig, READINESS_MODES, load_config, load_sites
from .export import FORMATS, export_results, format_results
from .models import SiteResult
from .scraper import BrowserManager, RendererError, crawl_sites

# Progress to stderr, data to stdout
console = Console(stderr=True)
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool, quiet: bool, debug: bool) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Suppress noisy loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def display_summary(results: dict[str, SiteResult]) -> None:
    """Display a summary table of crawled sites."""
    table = Table(title="Crawl Summary", show_header=True, header_style="bold magenta")

    table.add_column("Site", style="cyan", max_width=40)
    table.add_column("Pages", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Emails", justify="right")
    table.add_column("Social", justify="right")
    table.add_column("Phones", justify="right")

    for site, r in results.items():
        failed_color = "red" if r.pages_failed else "green"
        table.add_row(
            site[:40],
            str(r.pages_crawled),
            f"[{failed_color}]{r.pages_failed}[/{failed_color}]",
            str(len(r.emails)),
            str(len(r.social_media)),
            str(len(r.phone_numbers)),
        )

    console.print(table)


def run_crawl(sites: list[str], config: CrawlerConfig, quiet: bool) -> dict[str, SiteResult]:
    """Run the crawl, with a progress bar on stderr unless quiet."""
    if quiet:
        return asyncio.run(crawl_sites(sites, config))

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("[cyan]Crawling sites...", total=len(sites))

        def on_site_done(site: str, result: SiteResult) -> None:
            progress.advance(task)
            progress.console.print(
                f"[green]Done:[/green] {site} "
                f"[dim]({result.pages_crawled} pages, {result.pages_failed} failed)[/dim]"
            )

        return asyncio.run(crawl_sites(sites, config, on_site_done=on_site_done))


# ============================================================================
# CLI Group
# ============================================================================

@click.group(invoke_without_command=True)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx):
    """Crawl business websites for emails, phone numbers and social profiles."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============================================================================
# Crawl Command
# ============================================================================

@cli.command()
@click.argument("sites", nargs=-1)
@click.option("--sites-file", type=click.Path(exists=True, dir_okay=False),
              help="File with one site URL per line")
@click.option("--config", type=click.Path(exists=True, dir_okay=False), help="YAML config file")
@click.option("-o", "--output", type=click.Path(), help="Output file (default: stdout)")
@click.option("-f", "--format", "output_format",
              type=click.Choice(FORMATS), default="text", help="Output format")
@click.option("--no-headers", is_flag=True, help="Omit headers in CSV")
# Crawl behaviour
@click.option("--batch-size", type=int, help="Pages rendered concurrently per batch")
@click.option("--settle-delay", type=int, help="Settle delay after navigation (ms)")
@click.option("--batch-delay", type=int, help="Pause between batches (ms)")
@click.option("--site-delay", type=int, help="Pause between sites (ms)")
@click.option("--readiness", type=click.Choice(READINESS_MODES),
              help="How to decide a page has finished rendering")
@click.option("--timeout", "navigation_timeout", type=int, help="Navigation timeout (ms)")
@click.option("--max-pages", type=int, help="Max linked pages per site")
@click.option("--headless/--no-headless", default=None, help="Run the browser headless")
@click.option("--entry-page/--no-entry-page", "include_entry_page", default=None,
              help="Include the entry page's own signals")
# Logging
@click.option("-q", "--quiet", is_flag=True, help="Suppress progress, only emit data")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--dry-run", is_flag=True, help="Show plan without executing")
def crawl(
    sites: tuple,
    sites_file: Optional[str],
    config: Optional[str],
    output: Optional[str],
    output_format: str,
    no_headers: bool,
    batch_size: Optional[int],
    settle_delay: Optional[int],
    batch_delay: Optional[int],
    site_delay: Optional[int],
    readiness: Optional[str],
    navigation_timeout: Optional[int],
    max_pages: Optional[int],
    headless: Optional[bool],
    include_entry_page: Optional[bool],
    quiet: bool,
    verbose: bool,
    debug: bool,
    dry_run: bool,
):
    """
    Crawl sites and report their contact signals.

    Sites come from the arguments, else --sites-file, else the config file.
    Output goes to stdout by default (use -o for file).
    Progress goes to stderr (use -q to suppress).

    Examples:

        sitesignals crawl https://example.com/

        sitesignals crawl --sites-file sites.txt -f json -q | jq '.'
    """
    setup_logging(verbose, quiet, debug)

    try:
        crawler_config = load_config(
            config,
            batch_size=batch_size,
            settle_delay=settle_delay,
            batch_delay=batch_delay,
            site_delay=site_delay,
            readiness=readiness,
            navigation_timeout=navigation_timeout,
            max_pages=max_pages,
            headless=headless,
            include_entry_page=include_entry_page,
        )
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)

    try:
        if sites:
            targets = list(sites)
        elif sites_file:
            targets = load_sites(sites_file)
        else:
            targets = list(crawler_config.sites)
    except ConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        sys.exit(1)

    # Duplicates are crawled once
    targets = list(dict.fromkeys(targets))

    if not targets:
        console.print(
            "[red]No sites to crawl.[/red]\n"
            "[dim]Pass site URLs as arguments, use --sites-file, "
            "or list them under 'sites' in a --config file.[/dim]"
        )
        sys.exit(1)

    # Dry run
    if dry_run:
        click.echo(f"Would crawl {len(targets)} sites:")
        for site in targets:
            click.echo(f"  {site}")
        click.echo(
            f"Batch size: {crawler_config.batch_size}, "
            f"readiness: {crawler_config.readiness} ({crawler_config.settle_delay} ms), "
            f"delays: {crawler_config.batch_delay} ms / {crawler_config.site_delay} ms"
        )
        click.echo(f"Entry page signals: {'include' if crawler_config.include_entry_page else 'skip'}")
        sys.exit(0)

    try:
        results = run_crawl(targets, crawler_config, quiet)
    except RendererError as e:
        console.print(f"[red]Browser error:[/red] {e}")
        sys.exit(1)

    # Output
    if output:
        output_path = export_results(results, output, output_format, no_headers)
        if not quiet:
            console.print(f"\n[green]Saved:[/green] {output_path}")
            display_summary(results)
    else:
        output_data = format_results(results, output_format, no_headers)
        click.echo(output_data, nl=not output_data.endswith("\n"))

    sys.exit(0)


# ============================================================================
# Check Command
# ============================================================================

@cli.command()
@click.option("--url", default="https://example.com", show_default=True, help="Page to load")
def check(url: str):
    """Check that the browser can start and render a page."""

    async def load_page() -> bool:
        async with BrowserManager(CrawlerConfig(launch_attempts=1)) as browser:
            return await browser.test_connection(url)

    try:
        ok = asyncio.run(load_page())
    except RendererError as e:
        click.echo(f"✗ Browser: {e}")
        sys.exit(1)

    click.echo("✓ Browser: started")
    if ok:
        click.echo(f"✓ Render: {url} loaded")
    else:
        click.echo(f"✗ Render: could not load {url}")
    sys.exit(0 if ok else 1)


# ============================================================================
# Version Command
# ============================================================================

@cli.command()
def version():
    """Show version info."""
    click.echo(f"sitesignals {__version__}")


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    cli()
