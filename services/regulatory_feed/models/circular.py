"""
Circular Database Models
========================

SQLAlchemy ORM models for scraped circulars and their extracted impact.

Version: 0.1.0
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
)
from shared.database.postgres import Base


def _values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


def utcnow() -> datetime:
    return datetime.now(UTC)


class CircularSource(str, Enum):
    """Regulators whose publications are ingested."""

    RBI = "RBI"
    SEBI = "SEBI"
    MCA = "MCA"
    GST = "GST"


class CircularStatus(str, Enum):
    """Processing lifecycle of a circular."""

    SCRAPED = "scraped"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class RiskLevel(str, Enum):
    """Risk classification assigned by extraction."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


ALL = "All"


class CircularModel(Base):
    """
    One scraped regulatory publication.

    ``url`` is the natural key: the first write wins and later candidates
    with the same URL are ignored.
    """

    __tablename__ = "circulars"
    __table_args__ = (
        Index("ix_circulars_status", "status"),
        Index("ix_circulars_source", "source"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    source = Column(SQLEnum(CircularSource, values_callable=_values), nullable=False)
    title = Column(String(500), nullable=False)
    url = Column(Text, nullable=False, unique=True)
    raw_text = Column(Text)

    published_date = Column(Date)
    effective_date = Column(Date)

    status = Column(
        SQLEnum(CircularStatus, values_callable=_values),
        nullable=False,
        default=CircularStatus.SCRAPED,
    )
    summary = Column(Text)
    compliance_required = Column(Boolean)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Circular {self.id}: {self.source} {self.status}>"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": str(self.id),
            "source": self.source.value if self.source else None,
            "title": self.title,
            "url": self.url,
            "published_date": self.published_date.isoformat() if self.published_date else None,
            "effective_date": self.effective_date.isoformat() if self.effective_date else None,
            "status": self.status.value if self.status else None,
            "summary": self.summary,
            "compliance_required": self.compliance_required,
        }


class CircularImpactModel(Base):
    """One (entity type x industry type) slice of a circular's impact."""

    __tablename__ = "circular_impact"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    circular_id = Column(Uuid, ForeignKey("circulars.id"), nullable=False, index=True)

    entity_type = Column(String(50))
    industry_type = Column(String(200))
    impact_summary = Column(Text)
    compliance_action = Column(Text)
    risk_level = Column(SQLEnum(RiskLevel, values_callable=_values))
    due_date = Column(Date)
    immediate_action = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<CircularImpact {self.circular_id}: {self.entity_type}/{self.industry_type}>"
