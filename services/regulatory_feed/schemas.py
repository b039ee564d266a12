"""
Pipeline Schemas
================

Pydantic models for stage results and API bodies.

Version: 0.1.0
"""

import uuid
from enum import Enum

from pydantic import BaseModel, Field


class SourceStatus(str, Enum):
    """Outcome of one source within a scrape."""

    SUCCESS = "success"
    FAILED = "failed"


class SourceOutcome(BaseModel):
    """Per-source scrape result."""

    source: str
    count: int = 0
    status: SourceStatus
    error: str | None = None

    @property
    def log_message(self) -> str:
        return self.error if self.error is not None else f"Inserted {self.count} items"


class SourceSummary(BaseModel):
    count: int
    status: SourceStatus
    error: str | None = None


class ScrapeResponse(BaseModel):
    """Result of the scrape stage."""

    success: bool = True
    scraped: int = Field(..., description="Circulars newly inserted across all sources")
    sources: dict[str, SourceSummary] = Field(default_factory=dict)

    @classmethod
    def from_outcomes(cls, outcomes: list[SourceOutcome]) -> "ScrapeResponse":
        return cls(
            scraped=sum(o.count for o in outcomes),
            sources={
                o.source.lower(): SourceSummary(count=o.count, status=o.status, error=o.error)
                for o in outcomes
            },
        )


class ExtractionStatus(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"


class ExtractionOutcome(BaseModel):
    """Per-circular result of the process stage."""

    circular_id: uuid.UUID
    status: ExtractionStatus
    error: str | None = None
    attempts: int = 0
    impacts_created: int = 0


class ProcessRequest(BaseModel):
    circular_id: uuid.UUID | None = None


class ProcessResponse(BaseModel):
    success: bool = True
    results: list[ExtractionOutcome] = Field(default_factory=list)


class MapRequest(BaseModel):
    circular_id: uuid.UUID


class MapResponse(BaseModel):
    success: bool = True
    circular_id: uuid.UUID | None = None
    tasks_created: int = 0
    message: str | None = None


class PipelineRunResponse(BaseModel):
    """Aggregate of the three stages for one orchestrated run."""

    success: bool = True
    run_id: str
    scrape: ScrapeResponse
    process: ProcessResponse
    impact_mapping: list[MapResponse] = Field(default_factory=list)
