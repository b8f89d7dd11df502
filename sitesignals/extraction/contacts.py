"""Contact signal extraction (emails, phones, social media links)."""

import re
from typing import Iterable, Optional

from ..config import EMAIL_PATTERN, EMAIL_VALIDATOR, PHONE_PATTERN, SOCIAL_MEDIA_PATTERNS
from ..models import PageResult

_EMAIL_RE = re.compile(EMAIL_PATTERN, re.IGNORECASE)
_EMAIL_VALID_RE = re.compile(EMAIL_VALIDATOR)
_PHONE_RE = re.compile(PHONE_PATTERN)
_SOCIAL_RES = [(platform, re.compile(pattern)) for platform, pattern in SOCIAL_MEDIA_PATTERNS]


def is_valid_email(email: str) -> bool:
    """
    Sanity check for a candidate email.

    Local and domain parts must contain no '@' or whitespace, and the
    domain must contain at least one '.'.
    """
    if not email:
        return False
    return _EMAIL_VALID_RE.match(email) is not None


def extract_emails(html: Optional[str]) -> set[str]:
    """
    Extract email addresses from rendered HTML.

    Args:
        html: Rendered page HTML

    Returns:
        Set of emails, exactly as they appear in the page
    """
    if not html:
        return set()

    return {match for match in _EMAIL_RE.findall(html) if is_valid_email(match)}


def extract_phones(html: Optional[str]) -> set[str]:
    """
    Extract North American phone numbers from rendered HTML.

    Numbers are kept verbatim, so "555-123-4567" and "(555) 123-4567"
    are distinct entries.
    """
    if not html:
        return set()

    return set(_PHONE_RE.findall(html))


def social_platform(href: str) -> Optional[str]:
    """Return the first platform whose pattern matches href, or None."""
    for platform, pattern in _SOCIAL_RES:
        if pattern.search(href):
            return platform
    return None


def extract_social_links(hrefs: Optional[Iterable[str]]) -> set[str]:
    """
    Categorise anchor hrefs as social media profiles.

    Returns:
        Set of entries formatted "<Platform>: <href>"
    """
    entries = set()

    for href in hrefs or ():
        if not isinstance(href, str):
            continue
        platform = social_platform(href)
        if platform:
            entries.add(f"{platform}: {href}")

    return entries


def extract_signals(html: Optional[str], hrefs: Optional[Iterable[str]], url: str = "") -> PageResult:
    """
    Run all contact extractions over one page.

    Args:
        html: Rendered page HTML
        hrefs: Resolved href of every anchor on the page
        url: URL the page was rendered from

    Returns:
        PageResult with emails, social media entries and phone numbers
    """
    return PageResult(
        url=url,
        emails=extract_emails(html),
        social_media=extract_social_links(hrefs),
        phone_numbers=extract_phones(html),
    )
