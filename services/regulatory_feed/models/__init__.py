"""
Regulatory Feed Models
======================

SQLAlchemy ORM models for the regulatory feed pipeline.
"""

from services.regulatory_feed.models.circular import (
    ALL,
    CircularImpactModel,
    CircularModel,
    CircularSource,
    CircularStatus,
    RiskLevel,
)
from services.regulatory_feed.models.client import ClientModel, ProfileModel
from services.regulatory_feed.models.task import (
    HIGH_RISK_NOTIFICATION,
    ComplianceTaskModel,
    NotificationModel,
    ScrapeLogModel,
    TaskStatus,
)

__all__ = [
    "ALL",
    "CircularImpactModel",
    "CircularModel",
    "CircularSource",
    "CircularStatus",
    "RiskLevel",
    "ClientModel",
    "ProfileModel",
    "HIGH_RISK_NOTIFICATION",
    "ComplianceTaskModel",
    "NotificationModel",
    "ScrapeLogModel",
    "TaskStatus",
]
