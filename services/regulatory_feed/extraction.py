"""
Impact Extraction
=================

LLM-based extraction of structured compliance impact from scraped
circulars.

Each circular in the batch is moved to ``processing``, sent to the model
with a forced ``extract_compliance_data`` tool call, and either:

- updated to ``processed`` with its summary, and fanned out into one
  impact row per (entity type x industry), or
- marked ``failed`` once the retry budget is exhausted.

Circulars are handled one after another; one failure never stops the batch.

Version: 0.1.0
"""

import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.exc import SQLAlchemyError

from services.regulatory_feed.dates import parse_iso_date
from services.regulatory_feed.errors import CircularNotFoundError
from services.regulatory_feed.models import (
    ALL,
    CircularImpactModel,
    CircularModel,
    CircularStatus,
    RiskLevel,
)
from services.regulatory_feed.retry import RetryFailure, call_with_retry
from services.regulatory_feed.schemas import ExtractionOutcome, ExtractionStatus
from services.regulatory_feed.store import ComplianceStore
from shared.config import settings
from shared.llm import (
    LLMError,
    LLMMessage,
    LLMProvider,
    MessageRole,
    OutputSchema,
    StructuredOutputError,
)
from shared.logging import get_logger


logger = get_logger(__name__)


class EntityType(str, Enum):
    """Entity categories the model may name as affected."""

    PVT_LTD = "Pvt Ltd"
    LLP = "LLP"
    NBFC = "NBFC"
    LISTED = "Listed"
    STARTUP = "Startup"
    ALL = ALL


SYSTEM_PROMPT = (
    "You are an Indian regulatory compliance expert. Analyze the given regulatory "
    "circular and extract structured compliance information. You MUST respond "
    "using the extract_compliance_data function."
)

EXTRACT_COMPLIANCE_DATA = OutputSchema(
    name="extract_compliance_data",
    description="Extract structured compliance data from a regulatory circular",
    parameters={
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "Executive summary, max 200 words",
            },
            "effective_date": {
                "type": "string",
                "description": "Effective date in YYYY-MM-DD format, or null if not specified",
            },
            "entity_types_affected": {
                "type": "array",
                "items": {"type": "string", "enum": [e.value for e in EntityType]},
                "description": "Entity types affected",
            },
            "industries_affected": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Industries impacted",
            },
            "compliance_action": {
                "type": "string",
                "description": "Required compliance action",
            },
            "due_date": {
                "type": "string",
                "description": "Due date in YYYY-MM-DD format, or null",
            },
            "risk_level": {"type": "string", "enum": [r.value for r in RiskLevel]},
            "immediate_action": {
                "type": "boolean",
                "description": "Whether immediate action is required",
            },
            "compliance_required": {"type": "boolean"},
        },
        "required": [
            "summary",
            "entity_types_affected",
            "industries_affected",
            "compliance_action",
            "risk_level",
            "immediate_action",
            "compliance_required",
        ],
        "additionalProperties": False,
    },
)


class ComplianceExtraction(BaseModel):
    """Validated payload of one ``extract_compliance_data`` call."""

    summary: str
    effective_date: date | None = None
    entity_types_affected: list[EntityType]
    industries_affected: list[str] = Field(default_factory=list)
    compliance_action: str
    due_date: date | None = None
    risk_level: RiskLevel
    immediate_action: bool
    compliance_required: bool

    @field_validator("effective_date", "due_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: object) -> date | None:
        # The model writes "null", "" or prose when no date is stated
        return parse_iso_date(value)


@dataclass
class ExtractionConfig:
    """Configuration for the extraction stage."""

    batch_size: int = 10
    max_attempts: int = 2
    max_input_chars: int = 8000
    retry_wait_seconds: float = 1.0

    @classmethod
    def from_settings(cls) -> "ExtractionConfig":
        s = settings.extraction
        return cls(
            batch_size=s.batch_size,
            max_attempts=s.max_attempts,
            max_input_chars=s.max_input_chars,
            retry_wait_seconds=s.retry_wait_seconds,
        )


def build_messages(circular: CircularModel, max_input_chars: int = 8000) -> list[LLMMessage]:
    """System and user messages for one circular."""
    text = (circular.raw_text or circular.title or "")[:max_input_chars]
    source = circular.source.value if circular.source else "Unknown"
    return [
        LLMMessage(role=MessageRole.SYSTEM, content=SYSTEM_PROMPT),
        LLMMessage(
            role=MessageRole.USER,
            content=(
                f"Analyze this regulatory circular from {source}:\n\n"
                f"Title: {circular.title}\n\n"
                f"Content:\n{text}"
            ),
        ),
    ]


def build_impacts(
    circular_id: uuid.UUID,
    extraction: ComplianceExtraction,
) -> list[CircularImpactModel]:
    """
    Fan an extraction out into impact rows.

    One row per (entity type, industry). With no industries, one row per
    entity type with the ``All`` industry wildcard.
    """
    industries = extraction.industries_affected or [ALL]
    return [
        CircularImpactModel(
            id=uuid.uuid4(),
            circular_id=circular_id,
            entity_type=entity_type.value,
            industry_type=industry,
            impact_summary=extraction.summary,
            compliance_action=extraction.compliance_action,
            risk_level=extraction.risk_level,
            due_date=extraction.due_date,
            immediate_action=extraction.immediate_action,
        )
        for entity_type in extraction.entity_types_affected
        for industry in industries
    ]


def is_retryable(error: BaseException) -> bool:
    """Every backend or structured-output failure earns another attempt."""
    return isinstance(error, LLMError)


class ImpactExtractor:
    """Extraction stage over the store and an LLM provider."""

    def __init__(
        self,
        store: ComplianceStore,
        provider: LLMProvider,
        config: ExtractionConfig | None = None,
    ) -> None:
        self.store = store
        self.provider = provider
        self.config = config or ExtractionConfig.from_settings()

    async def extract(self, circular: CircularModel) -> ComplianceExtraction:
        """
        One extraction attempt.

        Raises:
            LLMError: backend failure, or a payload missing or failing validation
        """
        response = await self.provider.extract_structured(
            build_messages(circular, self.config.max_input_chars),
            EXTRACT_COMPLIANCE_DATA,
        )
        try:
            return ComplianceExtraction.model_validate(response.payload)
        except ValidationError as e:
            raise StructuredOutputError(f"Invalid extraction payload: {e}") from e

    async def select(self, circular_id: uuid.UUID | None) -> list[CircularModel]:
        if circular_id is not None:
            circular = await self.store.get_circular(circular_id)
            if circular is None:
                raise CircularNotFoundError(circular_id)
            return [circular]
        return list(
            await self.store.list_circulars_by_status(
                CircularStatus.SCRAPED, self.config.batch_size
            )
        )

    async def process(self, circular_id: uuid.UUID | None = None) -> list[ExtractionOutcome]:
        """
        Extract impact for one circular or the next batch of scraped ones.

        Args:
            circular_id: Process only this circular (any status)

        Returns:
            One outcome per selected circular, in selection order

        Raises:
            CircularNotFoundError: ``circular_id`` does not exist
        """
        circulars = await self.select(circular_id)
        logger.info("extraction_batch_selected", count=len(circulars))

        outcomes = [await self.process_one(circular) for circular in circulars]

        logger.info(
            "extraction_batch_completed",
            processed=sum(1 for o in outcomes if o.status == ExtractionStatus.PROCESSED),
            failed=sum(1 for o in outcomes if o.status == ExtractionStatus.FAILED),
        )
        return outcomes

    async def process_one(self, circular: CircularModel) -> ExtractionOutcome:
        try:
            await self.store.set_circular_status(circular.id, CircularStatus.PROCESSING)
        except SQLAlchemyError as e:
            logger.error("circular_status_update_failed", circular_id=str(circular.id), error=str(e))
            return ExtractionOutcome(
                circular_id=circular.id,
                status=ExtractionStatus.FAILED,
                error=str(e),
            )

        result = await call_with_retry(
            lambda: self.extract(circular),
            attempts=self.config.max_attempts,
            retryable=is_retryable,
            wait_seconds=self.config.retry_wait_seconds,
        )

        if isinstance(result, RetryFailure):
            logger.error(
                "extraction_failed",
                circular_id=str(circular.id),
                attempts=result.attempts,
                error=str(result.error),
            )
            try:
                await self.store.set_circular_status(circular.id, CircularStatus.FAILED)
            except SQLAlchemyError as e:
                logger.error(
                    "circular_status_update_failed",
                    circular_id=str(circular.id),
                    error=str(e),
                )
            return ExtractionOutcome(
                circular_id=circular.id,
                status=ExtractionStatus.FAILED,
                error=str(result.error),
                attempts=result.attempts,
            )

        extraction: ComplianceExtraction = result.value

        try:
            await self.store.update_circular(
                circular.id,
                summary=extraction.summary,
                effective_date=extraction.effective_date,
                compliance_required=extraction.compliance_required,
                status=CircularStatus.PROCESSED,
            )
        except SQLAlchemyError as e:
            logger.error("circular_update_failed", circular_id=str(circular.id), error=str(e))
            return ExtractionOutcome(
                circular_id=circular.id,
                status=ExtractionStatus.FAILED,
                error=str(e),
                attempts=result.attempts,
            )

        created = 0
        for impact in build_impacts(circular.id, extraction):
            try:
                await self.store.add_impact(impact)
                created += 1
            except SQLAlchemyError as e:
                logger.error(
                    "impact_insert_failed",
                    circular_id=str(circular.id),
                    entity_type=impact.entity_type,
                    industry_type=impact.industry_type,
                    error=str(e),
                )

        logger.info(
            "circular_processed",
            circular_id=str(circular.id),
            attempts=result.attempts,
            impacts=created,
            risk_level=extraction.risk_level.value,
        )
        return ExtractionOutcome(
            circular_id=circular.id,
            status=ExtractionStatus.PROCESSED,
            attempts=result.attempts,
            impacts_created=created,
        )
