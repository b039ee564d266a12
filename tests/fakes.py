"""
Test Doubles
============

In-memory collaborators shared by the regulatory feed tests.
"""

from datetime import date
from typing import Any

from services.regulatory_feed.models import CircularSource
from services.regulatory_feed.scrapers import BaseScraper, CircularCandidate, ScraperConfig
from shared.llm import LLMMessage, LLMProvider, OutputSchema, StructuredResponse


def extraction_payload(**overrides: Any) -> dict[str, Any]:
    """A valid ``extract_compliance_data`` payload."""
    payload: dict[str, Any] = {
        "summary": "KYC norms revised for periodic updation of customer records.",
        "effective_date": "2026-04-01",
        "entity_types_affected": ["NBFC"],
        "industries_affected": [],
        "compliance_action": "Update KYC policy and re-verify high-risk customers",
        "due_date": "2026-06-30",
        "risk_level": "low",
        "immediate_action": False,
        "compliance_required": True,
    }
    payload.update(overrides)
    return payload


class FakeLLMProvider(LLMProvider):
    """
    Scripted provider.

    Each call consumes the next scripted result; the last one repeats.
    Exceptions in the script are raised instead of returned.
    """

    def __init__(self, script: list[dict[str, Any] | Exception]) -> None:
        self.script = list(script)
        self.calls: list[tuple[list[LLMMessage], OutputSchema]] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return "fake-model"

    async def extract_structured(
        self,
        messages: list[LLMMessage],
        schema: OutputSchema,
        temperature: float | None = None,
    ) -> StructuredResponse:
        self.calls.append((messages, schema))
        result = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(result, Exception):
            raise result
        return StructuredResponse(payload=result, model=self.model, provider=self.name)

    async def health_check(self) -> dict[str, Any]:
        return {"status": "healthy", "provider": self.name, "model": self.model}


class StaticScraper(BaseScraper):
    """Scraper returning fixed candidates, or failing with ``error``."""

    def __init__(
        self,
        source: CircularSource,
        candidates: list[CircularCandidate] | None = None,
        error: Exception | None = None,
    ) -> None:
        super().__init__(ScraperConfig(retry_delay_seconds=0))
        self._source = source
        self._candidates = candidates or []
        self._error = error
        self.closed = False

    @property
    def source(self) -> CircularSource:
        return self._source

    @property
    def base_url(self) -> str:
        return "https://example.gov.in"

    async def produce_candidates(self) -> list[CircularCandidate]:
        if self._error is not None:
            raise self._error
        return self._candidates

    async def close(self) -> None:
        self.closed = True
        await super().close()


def candidate(url: str, published: date, title: str = "Circular on revised reporting norms") -> CircularCandidate:
    return CircularCandidate(title=title, url=url, published_date=published)
