"""
Pipeline Routes
===============

Triggers for the individual pipeline stages and for a full run.

Each endpoint runs synchronously and returns the stage's result; the
scheduler (cron or ``scripts/run_pipeline.py``) calls ``/run``.

Version: 0.1.0
"""

from fastapi import APIRouter, Depends

from services.regulatory_feed.extraction import ImpactExtractor
from services.regulatory_feed.mapping import ImpactMapper
from services.regulatory_feed.orchestrator import PipelineOrchestrator
from services.regulatory_feed.schemas import (
    MapRequest,
    MapResponse,
    PipelineRunResponse,
    ProcessRequest,
    ProcessResponse,
    ScrapeResponse,
)
from services.regulatory_feed.scrapers import BaseScraper, build_scrapers
from services.regulatory_feed.scraping import ScrapeService
from services.regulatory_feed.store import ComplianceStore, get_store
from shared.llm import LLMProvider, get_llm_provider
from shared.logging import get_logger


logger = get_logger(__name__)

router = APIRouter()


def get_scrapers() -> list[BaseScraper]:
    """Fresh scraper instances for one request."""
    return build_scrapers()


def get_scrape_service(
    store: ComplianceStore = Depends(get_store),
    scrapers: list[BaseScraper] = Depends(get_scrapers),
) -> ScrapeService:
    return ScrapeService(store, scrapers)


def get_extractor(
    store: ComplianceStore = Depends(get_store),
    provider: LLMProvider = Depends(get_llm_provider),
) -> ImpactExtractor:
    return ImpactExtractor(store, provider)


def get_mapper(store: ComplianceStore = Depends(get_store)) -> ImpactMapper:
    return ImpactMapper(store)


@router.post("/scrape", response_model=ScrapeResponse, response_model_exclude_none=True)
async def scrape_circulars(
    service: ScrapeService = Depends(get_scrape_service),
) -> ScrapeResponse:
    """
    Scrape every regulator and store new circulars.

    A failing source is reported in ``sources`` and does not fail the call.
    """
    return await service.run()


@router.post("/process", response_model=ProcessResponse, response_model_exclude_none=True)
async def process_circulars(
    request: ProcessRequest | None = None,
    extractor: ImpactExtractor = Depends(get_extractor),
) -> ProcessResponse:
    """
    Extract compliance impact.

    With ``circular_id`` only that circular is processed; otherwise the
    next batch of scraped circulars.
    """
    circular_id = request.circular_id if request else None
    results = await extractor.process(circular_id)
    return ProcessResponse(results=results)


@router.post("/map-impact", response_model=MapResponse, response_model_exclude_none=True)
async def map_impact(
    request: MapRequest,
    mapper: ImpactMapper = Depends(get_mapper),
) -> MapResponse:
    """Create compliance tasks for the clients a circular applies to."""
    return await mapper.run(request.circular_id)


@router.post("/run", response_model=PipelineRunResponse, response_model_exclude_none=True)
async def run_pipeline(
    scrape_service: ScrapeService = Depends(get_scrape_service),
    extractor: ImpactExtractor = Depends(get_extractor),
    mapper: ImpactMapper = Depends(get_mapper),
) -> PipelineRunResponse:
    """
    Run scrape, process and map in sequence.

    Mapping runs once per circular processed in this run.
    """
    orchestrator = PipelineOrchestrator(scrape_service, extractor, mapper)
    return await orchestrator.run()
