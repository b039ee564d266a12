"""
RBI Scraper
===========

Scraper for the Reserve Bank of India.

RBI's RSS feeds sit behind a WAF that rejects automated clients, so the
notifications and press-release listings are read through the
text-rendering reader instead. Both listings group entries under date
headings, which is why they are parsed with the carry-forward scan.

Version: 0.1.0
"""

from services.regulatory_feed.models import CircularSource
from services.regulatory_feed.scrapers.base import BaseScraper, CircularCandidate
from services.regulatory_feed.scrapers.listing import (
    ListingScan,
    link_pattern,
    scan_dated_listing,
)
from shared.logging import get_logger

logger = get_logger(__name__)


RBI_LINKS = link_pattern(10, url_prefix=r"https://www\.rbi\.org\.in/Scripts/")

ANCHOR_PAGES = ("NotificationUser.aspx#", "BS_PressReleaseDisplay.aspx#")
NON_DOCUMENT_LABELS = ("PDF -", "Image")


def is_navigation_link(title: str, url: str) -> bool:
    """In-page anchors and attachment labels are not circulars."""
    return any(anchor in url for anchor in ANCHOR_PAGES) or title.startswith(NON_DOCUMENT_LABELS)


def parse_rbi_listing(text: str, initial: ListingScan | None = None) -> ListingScan:
    """Carry-forward scan of one rendered RBI listing page."""
    return scan_dated_listing(text, RBI_LINKS, skip=is_navigation_link, initial=initial)


class RBIScraper(BaseScraper):
    """Text-rendered listing scraper for RBI."""

    LISTING_URLS = [
        "https://www.rbi.org.in/Scripts/NotificationUser.aspx",
        "https://www.rbi.org.in/Scripts/BS_PressReleaseDisplay.aspx",
    ]

    @property
    def source(self) -> CircularSource:
        return CircularSource.RBI

    @property
    def base_url(self) -> str:
        return "https://www.rbi.org.in"

    def candidates_from_pages(self, pages: list[str]) -> list[CircularCandidate]:
        """Scan pages in order, carrying the current date from one to the next."""
        state = ListingScan()
        for text in pages:
            state = parse_rbi_listing(text, initial=state)
        return list(state.candidates)

    async def produce_candidates(self) -> list[CircularCandidate]:
        pages = await self.fetch_pages(self.LISTING_URLS, rendered=True)
        candidates = self.candidates_from_pages(pages)

        logger.info(
            "rbi_listing_parsed",
            pages=len(pages),
            candidates=len(candidates),
        )
        return candidates
