"""
Base Scraper Module
===================

Abstract base class and common utilities for regulator listing scrapers.

Each source implements ``produce_candidates()``: fetch its listing page(s)
and turn the raw text into ``CircularCandidate`` records using pure parsing
functions. The shared ``scrape()`` applies the acceptance rule and persists
accepted candidates through the store.

Version: 0.1.0
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin

import httpx
from sqlalchemy.exc import SQLAlchemyError

from services.regulatory_feed.dates import is_within_window
from services.regulatory_feed.models import CircularSource
from shared.config import settings
from shared.logging import get_logger

if TYPE_CHECKING:
    from services.regulatory_feed.store import ComplianceStore


logger = get_logger(__name__)

MIN_TITLE_LENGTH = 10
MAX_TITLE_LENGTH = 500


@dataclass
class ScraperConfig:
    """Configuration for scrapers."""

    recent_days: int = 7

    retry_count: int = 2
    retry_delay_seconds: float = 2.0

    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    user_agent: str = "Mozilla/5.0 (compatible; RegBot/1.0)"
    reader_proxy: str = "https://r.jina.ai/"

    @classmethod
    def from_settings(cls) -> "ScraperConfig":
        s = settings.scraper
        return cls(
            recent_days=s.recent_days,
            retry_count=s.retry_count,
            retry_delay_seconds=s.retry_delay_seconds,
            connect_timeout=s.connect_timeout,
            read_timeout=s.read_timeout,
            user_agent=s.user_agent,
            reader_proxy=s.reader_proxy,
        )


@dataclass(frozen=True)
class CircularCandidate:
    """A document link found on a listing, before validation."""

    title: str
    url: str
    published_date: date | None


def resolve_url(href: str, base_url: str) -> str:
    """Make a listing href absolute against the source's domain."""
    href = href.strip()
    if href.startswith("http"):
        return href
    return urljoin(base_url.rstrip("/") + "/", href.lstrip("/"))


class BaseScraper(ABC):
    """
    Abstract base class for regulator scrapers.

    Provides common functionality:
    - HTTP client with timeouts and retry on 429/5xx/transport errors
    - Text-rendering reader proxy URLs
    - Candidate acceptance rule
    - Persistence with per-item error isolation
    """

    def __init__(self, config: ScraperConfig | None = None) -> None:
        self.config = config or ScraperConfig.from_settings()
        self._client: httpx.AsyncClient | None = None

    @property
    @abstractmethod
    def source(self) -> CircularSource:
        """Regulator this scraper ingests."""
        ...

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Site root used to resolve relative links."""
        ...

    @abstractmethod
    async def produce_candidates(self) -> list[CircularCandidate]:
        """
        Fetch the source's listing(s) and extract candidates in listing order.

        Raises:
            httpx.HTTPError: when the source as a whole cannot be fetched
        """
        ...

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            timeout = httpx.Timeout(
                connect=self.config.connect_timeout,
                read=self.config.read_timeout,
                write=30.0,
                pool=30.0,
            )

            self._client = httpx.AsyncClient(
                timeout=timeout,
                headers={"User-Agent": self.config.user_agent},
                follow_redirects=True,
                http2=True,
            )

        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an HTTP request with retry.

        429 and 5xx responses and connect/timeout errors are retried with
        linear backoff; other 4xx responses raise immediately.
        """
        client = await self._get_client()

        last_error: Exception | None = None
        for attempt in range(self.config.retry_count):
            try:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()

                logger.debug(
                    "scraper_request",
                    source=self.source.value,
                    url=url,
                    status=response.status_code,
                    bytes=len(response.content),
                )

                return response

            except httpx.HTTPStatusError as e:
                last_error = e
                status = e.response.status_code
                if status == 429 or status >= 500:
                    logger.warning(
                        "scraper_request_retry",
                        source=self.source.value,
                        url=url,
                        status=status,
                        attempt=attempt + 1,
                    )
                    await asyncio.sleep(self.config.retry_delay_seconds * (attempt + 1))
                else:
                    raise

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_error = e
                logger.warning(
                    "scraper_request_failed",
                    source=self.source.value,
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                )
                await asyncio.sleep(self.config.retry_delay_seconds * (attempt + 1))

        raise last_error or RuntimeError(f"Request failed after {self.config.retry_count} attempts")

    def reader_url(self, url: str) -> str:
        """URL of the text-rendered version of ``url``."""
        return f"{self.config.reader_proxy}{url}"

    async def fetch_text(self, url: str, rendered: bool = False) -> str:
        """Fetch a page body, optionally through the text-rendering reader."""
        target = self.reader_url(url) if rendered else url
        headers = {"Accept": "text/plain"} if rendered else {}
        response = await self._request("GET", target, headers=headers)
        return response.text

    async def fetch_pages(self, urls: list[str], rendered: bool = True) -> list[str]:
        """
        Fetch several listing pages, skipping the ones that fail.

        Used by sources spread over multiple pages, where one broken page
        should not discard the others.

        Raises:
            httpx.HTTPError: every page failed; the last error is re-raised
        """
        pages: list[str] = []
        last_error: httpx.HTTPError | None = None
        for url in urls:
            try:
                pages.append(await self.fetch_text(url, rendered=rendered))
            except httpx.HTTPError as e:
                last_error = e
                logger.error(
                    "scraper_page_failed",
                    source=self.source.value,
                    url=url,
                    error=str(e),
                )

        if not pages and last_error is not None:
            raise last_error
        return pages

    # -------------------------------------------------------------------------
    # Acceptance and persistence
    # -------------------------------------------------------------------------

    def accept(self, candidate: CircularCandidate, today: date | None = None) -> bool:
        """Apply the acceptance rule shared by every source."""
        if not candidate.title or len(candidate.title) < MIN_TITLE_LENGTH:
            return False
        if not candidate.url:
            return False
        if candidate.published_date is None:
            return False
        return is_within_window(candidate.published_date, self.config.recent_days, today=today)

    async def scrape(self, store: "ComplianceStore") -> int:
        """
        Produce, filter and persist this source's candidates.

        Returns:
            Number of circulars newly inserted (already-known URLs count 0)
        """
        candidates = await self.produce_candidates()

        inserted = 0
        for candidate in candidates:
            if not self.accept(candidate):
                continue

            try:
                created = await store.insert_circular_if_new(
                    source=self.source,
                    title=candidate.title[:MAX_TITLE_LENGTH],
                    url=candidate.url,
                    published_date=candidate.published_date,
                )
            except SQLAlchemyError as e:
                logger.error(
                    "circular_upsert_failed",
                    source=self.source.value,
                    url=candidate.url,
                    error=str(e),
                )
                continue

            if created:
                inserted += 1
                logger.info(
                    "circular_inserted",
                    source=self.source.value,
                    title=candidate.title[:60],
                    published_date=candidate.published_date.isoformat()
                    if candidate.published_date
                    else None,
                )

        logger.info(
            "scrape_source_completed",
            source=self.source.value,
            candidates=len(candidates),
            inserted=inserted,
        )
        return inserted
