"""
GST Council Scraper
===================

Scraper for the GST Council circulars and press-release listings.

The rendered pages have no table or heading structure worth relying on,
so document-like links are selected by vocabulary and dated with the
nearest date (numeric first, then named) within 500 characters.

Version: 0.1.0
"""

from services.regulatory_feed.models import CircularSource
from services.regulatory_feed.scrapers.base import BaseScraper, CircularCandidate
from services.regulatory_feed.scrapers.listing import find_links, link_pattern, nearest_date
from shared.logging import get_logger

logger = get_logger(__name__)


GST_LINKS = link_pattern(15)
PROXIMITY_RADIUS = 500
DOCUMENT_KEYWORDS = ("circular", "notification", "press", "gst")


def looks_like_document(title: str, url: str) -> bool:
    lowered = title.lower()
    return any(keyword in lowered for keyword in DOCUMENT_KEYWORDS) or ".pdf" in url


def parse_gst_listing(text: str) -> list[CircularCandidate]:
    """Vocabulary-filtered links of one rendered page, dated by proximity."""
    return [
        CircularCandidate(
            title=link.title,
            url=link.url,
            published_date=nearest_date(text, link.position, PROXIMITY_RADIUS, allow_named=True),
        )
        for link in find_links(text, GST_LINKS)
        if looks_like_document(link.title, link.url)
    ]


class GSTScraper(BaseScraper):
    """Proximity-dated text-rendered listing scraper for the GST Council."""

    LISTING_URLS = [
        "https://gstcouncil.gov.in/gst-circulars",
        "https://gstcouncil.gov.in/press-release",
    ]

    @property
    def source(self) -> CircularSource:
        return CircularSource.GST

    @property
    def base_url(self) -> str:
        return "https://gstcouncil.gov.in"

    async def produce_candidates(self) -> list[CircularCandidate]:
        pages = await self.fetch_pages(self.LISTING_URLS, rendered=True)
        candidates = [c for text in pages for c in parse_gst_listing(text)]

        logger.info(
            "gst_listing_parsed",
            pages=len(pages),
            candidates=len(candidates),
        )
        return candidates
