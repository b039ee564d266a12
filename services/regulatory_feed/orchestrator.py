"""
Pipeline Orchestrator
=====================

Runs the three stages in order for one scheduled invocation:

1. Scrape all sources
2. Extract impact for the next batch of scraped circulars
3. Map each successfully processed circular to client tasks

Per-item failures are absorbed by the stages themselves. Anything that
escapes a stage aborts the run as a ``PipelineError``.

Version: 0.1.0
"""

import uuid

from services.regulatory_feed.errors import PipelineError
from services.regulatory_feed.extraction import ImpactExtractor
from services.regulatory_feed.mapping import ImpactMapper
from services.regulatory_feed.schemas import (
    ExtractionStatus,
    MapResponse,
    PipelineRunResponse,
    ProcessResponse,
)
from services.regulatory_feed.scraping import ScrapeService
from shared.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)


class PipelineOrchestrator:
    """Sequences scrape, extraction and mapping."""

    def __init__(
        self,
        scraper: ScrapeService,
        extractor: ImpactExtractor,
        mapper: ImpactMapper,
    ) -> None:
        self.scraper = scraper
        self.extractor = extractor
        self.mapper = mapper

    async def run(self) -> PipelineRunResponse:
        """
        Execute one full pipeline run.

        Returns:
            Scrape summary, process results and one mapping result per
            processed circular

        Raises:
            PipelineError: a stage raised instead of reporting per-item failures
        """
        run_id = str(uuid.uuid4())
        bind_context(run_id=run_id)
        stage = "scrape"

        try:
            logger.info("pipeline_started")

            scrape = await self.scraper.run()

            stage = "process"
            outcomes = await self.extractor.process()

            stage = "map"
            mappings: list[MapResponse] = []
            for outcome in outcomes:
                if outcome.status != ExtractionStatus.PROCESSED:
                    continue
                mappings.append(await self.mapper.run(outcome.circular_id))

        except PipelineError:
            raise
        except Exception as e:
            logger.error("pipeline_failed", stage=stage, error=str(e), error_type=type(e).__name__)
            raise PipelineError(str(e) or type(e).__name__, stage=stage) from e
        finally:
            clear_context()

        logger.info(
            "pipeline_completed",
            run_id=run_id,
            scraped=scrape.scraped,
            processed=len(mappings),
            tasks_created=sum(m.tasks_created for m in mappings),
        )
        return PipelineRunResponse(
            run_id=run_id,
            scrape=scrape,
            process=ProcessResponse(results=outcomes),
            impact_mapping=mappings,
        )
