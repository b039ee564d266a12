"""
Scrape Stage
============

Runs every regulator scraper concurrently and records each one's outcome
independently: a failing source contributes zero and an error entry, and
never cancels or fails its siblings.

Version: 0.1.0
"""

import asyncio
from collections.abc import Awaitable, Sequence
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError

from services.regulatory_feed.schemas import (
    ScrapeResponse,
    SourceOutcome,
    SourceStatus,
)
from services.regulatory_feed.scrapers import BaseScraper, build_scrapers
from services.regulatory_feed.store import ComplianceStore
from shared.logging import get_logger


logger = get_logger(__name__)

T = TypeVar("T")


async def settle_all(awaitables: Sequence[Awaitable[T]]) -> list[T | BaseException]:
    """Wait for every awaitable; failures come back in place of results."""
    return await asyncio.gather(*awaitables, return_exceptions=True)


class ScrapeService:
    """Scrape stage over a set of scrapers."""

    def __init__(
        self,
        store: ComplianceStore,
        scrapers: list[BaseScraper] | None = None,
    ) -> None:
        self.store = store
        self._scrapers = scrapers

    async def run(self) -> ScrapeResponse:
        """
        Scrape all sources and append one scrape log entry per source.

        Returns:
            Total inserted plus a per-source breakdown
        """
        scrapers = self._scrapers if self._scrapers is not None else build_scrapers()

        try:
            results = await settle_all([scraper.scrape(self.store) for scraper in scrapers])
        finally:
            for scraper in scrapers:
                await scraper.close()

        outcomes: list[SourceOutcome] = []
        for scraper, result in zip(scrapers, results):
            source = scraper.source.value
            if isinstance(result, BaseException):
                logger.error(
                    "scrape_source_failed",
                    source=source,
                    error=str(result),
                    error_type=type(result).__name__,
                )
                outcome = SourceOutcome(
                    source=source,
                    count=0,
                    status=SourceStatus.FAILED,
                    error=str(result) or type(result).__name__,
                )
            else:
                outcome = SourceOutcome(source=source, count=result, status=SourceStatus.SUCCESS)
            outcomes.append(outcome)

            try:
                await self.store.append_scrape_log(
                    source=source,
                    status=outcome.status.value,
                    message=outcome.log_message,
                    items_found=outcome.count,
                )
            except SQLAlchemyError as e:
                logger.error("scrape_log_write_failed", source=source, error=str(e))

        response = ScrapeResponse.from_outcomes(outcomes)
        logger.info(
            "scrape_completed",
            scraped=response.scraped,
            failed=[o.source for o in outcomes if o.status == SourceStatus.FAILED],
        )
        return response
