"""Export functionality for crawl results (text, CSV, JSON)."""

import csv
import io
import json
import logging
from datetime import datetime
from pathlib import Path

from .models import SiteResult

logger = logging.getLogger(__name__)

FORMATS = ("text", "json", "jsonl", "csv")

CSV_COLUMNS = [
    "site",
    "emails",
    "social_media",
    "phone_numbers",
    "pages_crawled",
    "pages_failed",
]


def format_text(results: dict[str, SiteResult]) -> str:
    """
    Human-readable report, one block per site.

    Website: https://example.com/
    Emails: a@example.com, b@example.com
    Social Media: Facebook: https://facebook.com/example
    Phone Numbers: 555-123-4567
    """
    lines = []
    for site, result in results.items():
        lines.append(f"Website: {site}")
        lines.append(f"Emails: {', '.join(sorted(result.emails))}")
        lines.append(f"Social Media: {', '.join(sorted(result.social_media))}")
        lines.append(f"Phone Numbers: {', '.join(sorted(result.phone_numbers))}")
        lines.append("")
    return "\n".join(lines) + ("\n" if lines else "")


def format_json(results: dict[str, SiteResult], pretty: bool = True) -> str:
    data = {
        "exported_at": datetime.now().isoformat(),
        "total_sites": len(results),
        "sites": [r.to_dict() for r in results.values()],
    }
    return json.dumps(data, indent=2 if pretty else None, default=str)


def format_jsonl(results: dict[str, SiteResult]) -> str:
    return "\n".join(json.dumps(r.to_dict(), default=str) for r in results.values())


def format_csv(results: dict[str, SiteResult], no_headers: bool = False) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS, extrasaction="ignore")

    if not no_headers:
        writer.writeheader()

    for result in results.values():
        row = result.to_dict()
        for key in ("emails", "social_media", "phone_numbers"):
            row[key] = "; ".join(row[key])
        writer.writerow(row)

    return output.getvalue()


def format_results(
    results: dict[str, SiteResult],
    output_format: str = "text",
    no_headers: bool = False,
) -> str:
    """
    Format crawl results as a string.

    Args:
        results: Mapping of site base URL to SiteResult
        output_format: One of "text", "json", "jsonl", "csv"
        no_headers: Omit the CSV header row

    Returns:
        Formatted output
    """
    if output_format == "text":
        return format_text(results)
    elif output_format == "json":
        return format_json(results)
    elif output_format == "jsonl":
        return format_jsonl(results)
    elif output_format == "csv":
        return format_csv(results, no_headers)
    else:
        raise ValueError(f"Unknown format: {output_format}")


def export_results(
    results: dict[str, SiteResult],
    output_path: str,
    output_format: str = "json",
    no_headers: bool = False,
) -> str:
    """
    Export crawl results to a file.

    Args:
        results: Mapping of site base URL to SiteResult
        output_path: Path to output file
        output_format: One of "text", "json", "jsonl", "csv"
        no_headers: Omit the CSV header row

    Returns:
        Path to the created file
    """
    content = format_results(results, output_format, no_headers)

    # Create output directory if needed
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as f:
        f.write(content)

    logger.info("Exported %d sites to %s", len(results), path)
    return str(path)
