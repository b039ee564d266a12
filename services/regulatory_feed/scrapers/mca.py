"""
MCA Scraper
===========

Scraper for the Ministry of Corporate Affairs circulars e-book listing.

The rendered page is a pipe table with a ``dd/mm/yyyy`` column, parsed as
the primary path. Links outside the table (or in rows the table pattern
misses) are picked up by a proximity fallback that looks for the first
numeric date within 300 characters of the link. Both paths always run;
URL deduplication in the store absorbs the overlap.

Version: 0.1.0
"""

from services.regulatory_feed.models import CircularSource
from services.regulatory_feed.scrapers.base import BaseScraper, CircularCandidate, resolve_url
from services.regulatory_feed.scrapers.listing import (
    find_links,
    link_pattern,
    nearest_date,
    parse_table_rows,
)
from shared.logging import get_logger

logger = get_logger(__name__)


MCA_FALLBACK_LINKS = link_pattern(15)
PROXIMITY_RADIUS = 300


def looks_like_circular(title: str, url: str) -> bool:
    return "circular" in title.lower() or ".pdf" in url


class MCAScraper(BaseScraper):
    """Tabular text-rendered listing scraper for MCA."""

    LISTING_URL = "https://www.mca.gov.in/content/mca/global/en/acts-rules/ebooks/circulars.html"

    @property
    def source(self) -> CircularSource:
        return CircularSource.MCA

    @property
    def base_url(self) -> str:
        return "https://www.mca.gov.in"

    def table_candidates(self, text: str) -> list[CircularCandidate]:
        return [
            CircularCandidate(
                title=row.title,
                url=resolve_url(row.href, self.base_url),
                published_date=row.published_date,
            )
            for row in parse_table_rows(text)
        ]

    def proximity_candidates(self, text: str) -> list[CircularCandidate]:
        candidates = []
        for link in find_links(text, MCA_FALLBACK_LINKS):
            if not looks_like_circular(link.title, link.url):
                continue
            published = nearest_date(text, link.position, PROXIMITY_RADIUS)
            if published is None:
                continue
            candidates.append(
                CircularCandidate(title=link.title, url=link.url, published_date=published)
            )
        return candidates

    async def produce_candidates(self) -> list[CircularCandidate]:
        text = await self.fetch_text(self.LISTING_URL, rendered=True)
        table = self.table_candidates(text)
        fallback = self.proximity_candidates(text)

        logger.info(
            "mca_listing_parsed",
            bytes=len(text),
            table_rows=len(table),
            fallback_links=len(fallback),
        )
        return table + fallback
