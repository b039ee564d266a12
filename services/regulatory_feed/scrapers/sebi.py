"""
SEBI Scraper
============

Scraper for the Securities and Exchange Board of India.

SEBI publishes an RSS 2.0 feed covering circulars, orders and press
releases. It is fetched directly and parsed with feedparser.

Feed: https://www.sebi.gov.in/sebirss.xml

Version: 0.1.0
"""

import feedparser

from services.regulatory_feed.dates import feed_entry_date
from services.regulatory_feed.models import CircularSource
from services.regulatory_feed.scrapers.base import BaseScraper, CircularCandidate, resolve_url
from shared.logging import get_logger

logger = get_logger(__name__)


class SEBIScraper(BaseScraper):
    """Feed-based scraper for SEBI."""

    FEED_URL = "https://www.sebi.gov.in/sebirss.xml"

    @property
    def source(self) -> CircularSource:
        return CircularSource.SEBI

    @property
    def base_url(self) -> str:
        return "https://www.sebi.gov.in"

    def candidates_from_feed(self, xml: str) -> list[CircularCandidate]:
        """
        Turn feed XML into candidates with absolute links and UTC dates.

        Entries missing a title or link are dropped. A missing publication
        date is kept as ``None`` and rejected later by the acceptance rule.
        """
        feed = feedparser.parse(xml)
        if feed.bozo and not feed.entries:
            logger.warning(
                "sebi_feed_malformed",
                error=str(feed.get("bozo_exception", "")),
            )

        candidates = []
        for entry in feed.entries:
            title = (entry.get("title") or "").strip()
            link = (entry.get("link") or "").strip()
            if not title or not link:
                continue
            candidates.append(
                CircularCandidate(
                    title=title,
                    url=resolve_url(link, self.base_url),
                    published_date=feed_entry_date(
                        entry.get("published_parsed") or entry.get("updated_parsed")
                    ),
                )
            )
        return candidates

    async def produce_candidates(self) -> list[CircularCandidate]:
        xml = await self.fetch_text(self.FEED_URL)
        candidates = self.candidates_from_feed(xml)

        logger.info(
            "sebi_feed_parsed",
            items=len(candidates),
            bytes=len(xml),
        )
        return candidates
