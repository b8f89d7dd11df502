"""Configuration settings for the site signals crawler."""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

ENV_PREFIX = "SITESIGNALS_"

READINESS_MODES = ("network_idle", "fixed")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class ConfigError(ValueError):
    """Raised for invalid settings or unreadable config files."""


@dataclass
class CrawlerConfig:
    """Configuration for the crawl pipeline and the browser behind it."""

    # Target sites, visited in order
    sites: list = field(default_factory=list)

    # Batching and politeness (all delays in ms)
    batch_size: int = 5
    settle_delay: int = 5000
    batch_delay: int = 1000
    site_delay: int = 2000

    # Page readiness: "network_idle" waits for the network to go quiet
    # (bounded by settle_delay), "fixed" always sleeps settle_delay
    readiness: str = "network_idle"
    navigation_timeout: int = 30000  # ms

    # Browser settings
    headless: bool = True
    stealth: bool = True
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT
    launch_attempts: int = 3

    # Crawl scope
    include_entry_page: bool = True
    max_pages: Optional[int] = None

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if any setting is out of range."""
        if not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise ConfigError(f"batch_size must be a positive integer, got {self.batch_size!r}")

        for name in ("settle_delay", "batch_delay", "site_delay"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ConfigError(f"{name} must be >= 0 ms, got {value!r}")

        if self.navigation_timeout <= 0:
            raise ConfigError(f"navigation_timeout must be > 0 ms, got {self.navigation_timeout!r}")

        if self.readiness not in READINESS_MODES:
            raise ConfigError(
                f"readiness must be one of {', '.join(READINESS_MODES)}, got {self.readiness!r}"
            )

        if self.viewport_width < 1 or self.viewport_height < 1:
            raise ConfigError("viewport dimensions must be positive")

        if self.launch_attempts < 1:
            raise ConfigError(f"launch_attempts must be >= 1, got {self.launch_attempts!r}")

        if self.max_pages is not None and self.max_pages < 0:
            raise ConfigError(f"max_pages must be >= 0, got {self.max_pages!r}")

        if isinstance(self.sites, str):
            self.sites = [self.sites]

    @property
    def viewport(self) -> dict:
        """Viewport in the shape Playwright expects."""
        return {"width": self.viewport_width, "height": self.viewport_height}


def _coerce(raw: str, current):
    """Convert an environment string to the type of the current value."""
    if isinstance(current, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, list):
        return [s.strip() for s in raw.split(",") if s.strip()]
    if current is None:
        # Optional integers (max_pages): empty means unset
        return int(raw) if raw.strip() else None
    return raw


def load_config(path: Optional[str] = None, **overrides) -> CrawlerConfig:
    """
    Load settings from YAML file with environment overrides.

    Priority: keyword overrides > environment > config file > defaults

    Args:
        path: Path to YAML config file (optional)
        **overrides: Explicit values, e.g. from CLI flags (None is ignored)

    Returns:
        Validated CrawlerConfig
    """
    values = {}
    known = {f.name for f in fields(CrawlerConfig)}

    if path:
        config_path = Path(path)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Top level of {config_path} must be a mapping")

        for key, value in data.items():
            if key in known:
                values[key] = value
            else:
                logger.warning("Ignoring unknown config key: %s", key)

    # Environment overrides
    defaults = CrawlerConfig()
    for name in known:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        try:
            values[name] = _coerce(raw, getattr(defaults, name))
        except ValueError as e:
            raise ConfigError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}") from e

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    try:
        return CrawlerConfig(**values)
    except TypeError as e:
        raise ConfigError(str(e)) from e


def load_sites(path: str) -> list[str]:
    """
    Read a sites file: one base URL per line.

    Blank lines and lines starting with '#' are skipped.
    """
    sites = []
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    sites.append(line)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read sites file {path}: {e}") from e
    return sites


# Social platforms in match order: the first matching pattern wins
SOCIAL_MEDIA_PATTERNS = [
    ("Facebook", r"facebook\.com"),
    ("Twitter", r"twitter\.com"),
    ("LinkedIn", r"linkedin\.com"),
    ("Instagram", r"instagram\.com"),
]

# Email pattern (broad); matches are re-checked by EMAIL_VALIDATOR
EMAIL_PATTERN = r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"

EMAIL_VALIDATOR = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# North American phone numbers, e.g. 555-123-4567, (555) 123-4567, +1 555.123.4567
PHONE_PATTERN = r"(?<!\w)(?:\+?1[-.\s]?)?(?:\(\d{3}\)|\d{3})[-.\s]?\d{3}[-.\s]?\d{4}\b"
