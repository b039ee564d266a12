#!/usr/bin/env python3
"""
Pipeline Runner
===============

Run the regulatory feed pipeline (or one stage of it) from the command
line, e.g. from cron, and print the result as JSON.

Usage:
    python scripts/run_pipeline.py
    python scripts/run_pipeline.py --stage scrape
    python scripts/run_pipeline.py --stage process --circular-id <uuid>
    python scripts/run_pipeline.py --stage map --circular-id <uuid>

Version: 0.1.0
"""

import argparse
import asyncio
import sys
import uuid
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.config import settings
from shared.logging import get_logger, setup_logging

setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="regulatory-feed-cron",
)
logger = get_logger(__name__)

STAGES = ("run", "scrape", "process", "map")


async def run_stage(stage: str, circular_id: uuid.UUID | None) -> str:
    """Run one stage and return its JSON result."""
    from services.regulatory_feed.extraction import ImpactExtractor
    from services.regulatory_feed.mapping import ImpactMapper
    from services.regulatory_feed.orchestrator import PipelineOrchestrator
    from services.regulatory_feed.schemas import ProcessResponse
    from services.regulatory_feed.scraping import ScrapeService
    from services.regulatory_feed.store import get_store
    from shared.llm import get_llm_provider

    store = get_store()

    if stage == "scrape":
        result = await ScrapeService(store).run()
    elif stage == "process":
        outcomes = await ImpactExtractor(store, get_llm_provider()).process(circular_id)
        result = ProcessResponse(results=outcomes)
    elif stage == "map":
        if circular_id is None:
            raise ValueError("--circular-id is required for the map stage")
        result = await ImpactMapper(store).run(circular_id)
    else:
        orchestrator = PipelineOrchestrator(
            ScrapeService(store),
            ImpactExtractor(store, get_llm_provider()),
            ImpactMapper(store),
        )
        result = await orchestrator.run()

    return result.model_dump_json(indent=2, exclude_none=True)


async def main(args: argparse.Namespace) -> int:
    from services.regulatory_feed.errors import PipelineError
    from shared.database.postgres import PostgresClient

    try:
        print(await run_stage(args.stage, args.circular_id))
        return 0
    except (PipelineError, ValueError) as e:
        logger.error("pipeline_run_failed", stage=args.stage, error=str(e))
        return 1
    finally:
        await PostgresClient.close()


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Run the regulatory feed pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--stage",
        choices=STAGES,
        default="run",
        help="Stage to run (default: full pipeline)",
    )
    parser.add_argument(
        "--circular-id",
        type=uuid.UUID,
        default=None,
        help="Circular to process or map",
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
