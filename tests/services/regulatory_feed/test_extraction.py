"""
Tests for Impact Extraction
===========================

Tests for:
- Payload validation and impact fan-out
- Prompt construction
- Retry exhaustion and failure recording
- Store interaction

Version: 0.1.0
"""

import uuid
from datetime import date
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from services.regulatory_feed.errors import CircularNotFoundError
from services.regulatory_feed.extraction import (
    EXTRACT_COMPLIANCE_DATA,
    ComplianceExtraction,
    ExtractionConfig,
    ImpactExtractor,
    build_impacts,
    build_messages,
    is_retryable,
)
from services.regulatory_feed.models import CircularModel, CircularSource, CircularStatus, RiskLevel
from services.regulatory_feed.schemas import ExtractionStatus
from services.regulatory_feed.store import ComplianceStore
from shared.llm import (
    LLMBackendError,
    LLMMessage,
    LLMQuotaError,
    LLMRateLimitError,
    OutputSchema,
    StructuredOutputError,
    StructuredResponse,
)
from tests.fakes import FakeLLMProvider, extraction_payload


def extractor(store: ComplianceStore, provider: FakeLLMProvider) -> ImpactExtractor:
    return ImpactExtractor(store, provider, ExtractionConfig(retry_wait_seconds=0))


# ============================================================================
# Validation and fan-out
# ============================================================================


class TestComplianceExtraction:
    """Tests for payload validation."""

    def test_valid_payload(self) -> None:
        extraction = ComplianceExtraction.model_validate(extraction_payload())

        assert extraction.effective_date == date(2026, 4, 1)
        assert extraction.risk_level == RiskLevel.LOW

    def test_null_dates_tolerated(self) -> None:
        extraction = ComplianceExtraction.model_validate(
            extraction_payload(effective_date="null", due_date="")
        )

        assert extraction.effective_date is None
        assert extraction.due_date is None

    def test_unknown_entity_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            ComplianceExtraction.model_validate(
                extraction_payload(entity_types_affected=["Partnership"])
            )

    def test_schema_enumerates_entity_types(self) -> None:
        items = EXTRACT_COMPLIANCE_DATA.parameters["properties"]["entity_types_affected"]["items"]

        assert items["enum"] == ["Pvt Ltd", "LLP", "NBFC", "Listed", "Startup", "All"]


class TestBuildImpacts:
    """Tests for impact fan-out."""

    def test_no_industries_one_wildcard_row_per_entity(self) -> None:
        extraction = ComplianceExtraction.model_validate(
            extraction_payload(entity_types_affected=["NBFC", "Listed"], industries_affected=[])
        )

        impacts = build_impacts(uuid.uuid4(), extraction)

        assert [(i.entity_type, i.industry_type) for i in impacts] == [
            ("NBFC", "All"),
            ("Listed", "All"),
        ]

    def test_cross_product(self) -> None:
        extraction = ComplianceExtraction.model_validate(
            extraction_payload(
                entity_types_affected=["Pvt Ltd"],
                industries_affected=["Banking", "Insurance"],
            )
        )

        impacts = build_impacts(uuid.uuid4(), extraction)

        assert [(i.entity_type, i.industry_type) for i in impacts] == [
            ("Pvt Ltd", "Banking"),
            ("Pvt Ltd", "Insurance"),
        ]

    def test_rows_carry_extraction_fields(self) -> None:
        circular_id = uuid.uuid4()
        extraction = ComplianceExtraction.model_validate(
            extraction_payload(risk_level="high", immediate_action=True)
        )

        [impact] = build_impacts(circular_id, extraction)

        assert impact.circular_id == circular_id
        assert impact.risk_level == RiskLevel.HIGH
        assert impact.immediate_action is True
        assert impact.due_date == date(2026, 6, 30)


class TestPrompt:
    """Tests for message construction."""

    def test_text_truncated(self) -> None:
        circular = CircularModel(
            source=CircularSource.SEBI,
            title="Circular on disclosures",
            url="https://sebi/1",
            raw_text="x" * 9000,
        )

        [system, user] = build_messages(circular, max_input_chars=8000)

        assert "Indian regulatory compliance expert" in system.content
        assert user.content.startswith("Analyze this regulatory circular from SEBI:")
        assert user.content.endswith("Content:\n" + "x" * 8000)

    def test_title_used_without_raw_text(self) -> None:
        circular = CircularModel(source=CircularSource.RBI, title="Master Direction on KYC", url="u")

        [_, user] = build_messages(circular)

        assert user.content.endswith("Content:\nMaster Direction on KYC")


class TestRetryPredicate:
    """Every LLM failure is retryable; anything else is not."""

    @pytest.mark.parametrize(
        "error",
        [
            LLMRateLimitError("429", 429),
            LLMQuotaError("402", 402),
            LLMBackendError("500", 500),
            StructuredOutputError("No tool call in LLM response"),
        ],
    )
    def test_llm_errors(self, error: Exception) -> None:
        assert is_retryable(error)

    def test_other_errors(self) -> None:
        assert not is_retryable(KeyError("bug"))


# ============================================================================
# Processing
# ============================================================================


class TestProcess:
    """Tests for ImpactExtractor.process."""

    @pytest.mark.asyncio
    async def test_success(self, store: ComplianceStore, scraped_circular: CircularModel) -> None:
        provider = FakeLLMProvider(
            [extraction_payload(entity_types_affected=["NBFC", "Listed"], industries_affected=[])]
        )

        [outcome] = await extractor(store, provider).process()

        assert outcome.status == ExtractionStatus.PROCESSED
        assert outcome.attempts == 1
        assert outcome.impacts_created == 2

        stored = await store.get_circular(scraped_circular.id)
        assert stored.status == CircularStatus.PROCESSED
        assert stored.effective_date == date(2026, 4, 1)
        assert stored.compliance_required is True
        assert len(await store.list_impacts(scraped_circular.id)) == 2

    @pytest.mark.asyncio
    async def test_retry_exhaustion(self, store: ComplianceStore, scraped_circular: CircularModel) -> None:
        """Two failing attempts mark the circular failed with the second error."""
        provider = FakeLLMProvider(
            [LLMRateLimitError("first failure", 429), LLMBackendError("second failure", 500)]
        )

        [outcome] = await extractor(store, provider).process()

        assert len(provider.calls) == 2
        assert outcome.status == ExtractionStatus.FAILED
        assert outcome.attempts == 2
        assert outcome.error == "second failure"

        stored = await store.get_circular(scraped_circular.id)
        assert stored.status == CircularStatus.FAILED
        assert await store.list_impacts(scraped_circular.id) == []

    @pytest.mark.asyncio
    async def test_recovers_on_second_attempt(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        provider = FakeLLMProvider([StructuredOutputError("No tool call"), extraction_payload()])

        [outcome] = await extractor(store, provider).process()

        assert outcome.status == ExtractionStatus.PROCESSED
        assert outcome.attempts == 2

    @pytest.mark.asyncio
    async def test_invalid_payload_is_failure(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        provider = FakeLLMProvider([extraction_payload(risk_level="extreme")])

        [outcome] = await extractor(store, provider).process()

        assert outcome.status == ExtractionStatus.FAILED
        assert len(provider.calls) == 2
        assert "Invalid extraction payload" in outcome.error

    @pytest.mark.asyncio
    async def test_marked_processing_before_llm_call(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        seen: list[CircularStatus] = []

        class ObservingProvider(FakeLLMProvider):
            async def extract_structured(
                self,
                messages: list[LLMMessage],
                schema: OutputSchema,
                temperature: float | None = None,
            ) -> StructuredResponse:
                circular = await store.get_circular(scraped_circular.id)
                seen.append(circular.status)
                return await super().extract_structured(messages, schema, temperature)

        await extractor(store, ObservingProvider([extraction_payload()])).process()

        assert seen == [CircularStatus.PROCESSING]

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self, store: ComplianceStore) -> None:
        for i in range(2):
            await store.insert_circular_if_new(
                CircularSource.GST, f"Circular on input tax credit {i}", f"https://gst/{i}", None
            )
        provider = FakeLLMProvider(
            [LLMQuotaError("a", 402), LLMQuotaError("b", 402), extraction_payload()]
        )

        outcomes = await extractor(store, provider).process()

        assert [o.status for o in outcomes] == [ExtractionStatus.FAILED, ExtractionStatus.PROCESSED]

    @pytest.mark.asyncio
    async def test_batch_only_takes_scraped(self, store: ComplianceStore, scraped_circular: CircularModel) -> None:
        await store.set_circular_status(scraped_circular.id, CircularStatus.PROCESSED)

        outcomes = await extractor(store, FakeLLMProvider([extraction_payload()])).process()

        assert outcomes == []

    @pytest.mark.asyncio
    async def test_batch_size(self, store: ComplianceStore) -> None:
        for i in range(3):
            await store.insert_circular_if_new(
                CircularSource.MCA, f"General circular number {i}", f"https://mca/{i}", None
            )
        config = ExtractionConfig(batch_size=2, retry_wait_seconds=0)

        outcomes = await ImpactExtractor(store, FakeLLMProvider([extraction_payload()]), config).process()

        assert len(outcomes) == 2

    @pytest.mark.asyncio
    async def test_explicit_id_any_status(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        await store.set_circular_status(scraped_circular.id, CircularStatus.FAILED)

        [outcome] = await extractor(store, FakeLLMProvider([extraction_payload()])).process(
            scraped_circular.id
        )

        assert outcome.circular_id == scraped_circular.id
        assert outcome.status == ExtractionStatus.PROCESSED

    @pytest.mark.asyncio
    async def test_unknown_id(self, store: ComplianceStore) -> None:
        with pytest.raises(CircularNotFoundError):
            await extractor(store, FakeLLMProvider([extraction_payload()])).process(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_failed_update_writes_no_impacts(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        with patch.object(
            store, "update_circular", AsyncMock(side_effect=SQLAlchemyError("connection lost"))
        ):
            [outcome] = await extractor(store, FakeLLMProvider([extraction_payload()])).process()

        assert outcome.status == ExtractionStatus.FAILED
        assert await store.list_impacts(scraped_circular.id) == []

    @pytest.mark.asyncio
    async def test_failed_impact_insert_skipped(
        self, store: ComplianceStore, scraped_circular: CircularModel
    ) -> None:
        payload: dict[str, Any] = extraction_payload(entity_types_affected=["NBFC", "LLP"])
        original = store.add_impact
        calls = 0

        async def flaky_add(impact: Any) -> Any:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise SQLAlchemyError("constraint")
            return await original(impact)

        with patch.object(store, "add_impact", side_effect=flaky_add):
            [outcome] = await extractor(store, FakeLLMProvider([payload])).process()

        assert outcome.status == ExtractionStatus.PROCESSED
        assert outcome.impacts_created == 1
