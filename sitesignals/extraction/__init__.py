"""Signal extraction module for rendered pages."""

from .contacts import (
    extract_emails,
    extract_phones,
    extract_signals,
    extract_social_links,
    is_valid_email,
)
from .links import harvest_links

__all__ = [
    "extract_emails",
    "extract_phones",
    "extract_signals",
    "extract_social_links",
    "is_valid_email",
    "harvest_links",
]
