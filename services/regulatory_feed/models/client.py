"""
Client Database Models
======================

Client roster and firm members. Both tables are owned by the CRUD layer;
the pipeline only reads them.

Version: 0.1.0
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from services.regulatory_feed.models.circular import utcnow
from shared.database.postgres import Base


class ClientModel(Base):
    """A client company managed by a compliance firm."""

    __tablename__ = "clients"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    firm_id = Column(Uuid, nullable=False, index=True)
    client_name = Column(String(255), nullable=False)

    # Matching attributes
    entity_type = Column(String(50))
    industry_type = Column(String(200))

    gst_registered = Column(Boolean)
    has_foreign_investment = Column(Boolean)
    turnover = Column(String(50))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Client {self.id}: {self.client_name}>"


class ProfileModel(Base):
    """A user belonging to a firm."""

    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    firm_id = Column(Uuid, index=True)
    full_name = Column(String(255))
    email = Column(String(255))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
