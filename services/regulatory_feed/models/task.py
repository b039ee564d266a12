"""
Task, Notification and Scrape Log Models
========================================

Records derived by the pipeline from circular impact, plus the scrape
audit trail.

Version: 0.1.0
"""

import uuid
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from services.regulatory_feed.models.circular import RiskLevel, _values, utcnow
from shared.database.postgres import Base


class TaskStatus(str, Enum):
    """Compliance task status."""

    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


HIGH_RISK_NOTIFICATION = "high_risk"


class ComplianceTaskModel(Base):
    """
    A compliance obligation for one client.

    At most one task exists per (client, circular); manual tasks carry no
    circular.
    """

    __tablename__ = "compliance_tasks"
    __table_args__ = (
        UniqueConstraint("client_id", "circular_id", name="uq_compliance_tasks_client_circular"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid, ForeignKey("clients.id"), nullable=False, index=True)
    firm_id = Column(Uuid, nullable=False, index=True)
    circular_id = Column(Uuid, ForeignKey("circulars.id"))

    task_title = Column(String(500), nullable=False)
    description = Column(Text)
    due_date = Column(Date)
    status = Column(
        SQLEnum(TaskStatus, values_callable=_values),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    risk_level = Column(SQLEnum(RiskLevel, values_callable=_values), default=RiskLevel.LOW)
    reminder_sent = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<ComplianceTask {self.id}: {self.task_title[:40]!r}>"


class NotificationModel(Base):
    """An in-app notification for one user."""

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text)
    type = Column(String(50))
    read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ScrapeLogModel(Base):
    """Append-only record of one source's outcome in one scrape."""

    __tablename__ = "scrape_logs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    source = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    message = Column(Text)
    items_found = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
