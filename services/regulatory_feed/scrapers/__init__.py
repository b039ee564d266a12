"""
Regulator Scrapers
==================

One scraper strategy per regulator, all behind ``BaseScraper``.

Supported sources:
- RBI (text-rendered listing, carry-forward date headings)
- SEBI (RSS feed)
- MCA (text-rendered table with proximity fallback)
- GST Council (text-rendered listing, proximity dating)

Version: 0.1.0
"""

from services.regulatory_feed.scrapers.base import (
    BaseScraper,
    CircularCandidate,
    ScraperConfig,
)
from services.regulatory_feed.scrapers.gst import GSTScraper
from services.regulatory_feed.scrapers.mca import MCAScraper
from services.regulatory_feed.scrapers.rbi import RBIScraper
from services.regulatory_feed.scrapers.sebi import SEBIScraper

SCRAPER_CLASSES: tuple[type[BaseScraper], ...] = (
    RBIScraper,
    SEBIScraper,
    MCAScraper,
    GSTScraper,
)


def build_scrapers(config: ScraperConfig | None = None) -> list[BaseScraper]:
    """Instantiate every registered scraper with a shared configuration."""
    config = config or ScraperConfig.from_settings()
    return [cls(config) for cls in SCRAPER_CLASSES]


__all__ = [
    # Base
    "BaseScraper",
    "CircularCandidate",
    "ScraperConfig",
    "build_scrapers",
    # Implementations
    "RBIScraper",
    "SEBIScraper",
    "MCAScraper",
    "GSTScraper",
]
