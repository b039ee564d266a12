"""
Compliance Store
================

Read/write contract between the pipeline stages and the relational store.

Every method runs in its own short transaction, so one failed write never
poisons the writes that follow it. Circular deduplication relies on the
database: ``INSERT ... ON CONFLICT (url) DO NOTHING RETURNING id`` tells
us atomically whether this call created the row.

Version: 0.1.0
"""

import uuid
from collections.abc import Sequence
from datetime import date
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from services.regulatory_feed.models import (
    CircularImpactModel,
    CircularModel,
    CircularSource,
    CircularStatus,
    ClientModel,
    ComplianceTaskModel,
    NotificationModel,
    ProfileModel,
    ScrapeLogModel,
)
from shared.database.postgres import PostgresClient, create_session_factory, postgres_session


class ComplianceStore:
    """Async repository over the pipeline's tables."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory: async_sessionmaker[AsyncSession] = create_session_factory(engine)
        self._insert = sqlite.insert if engine.dialect.name == "sqlite" else postgresql.insert

    # -------------------------------------------------------------------------
    # Circulars
    # -------------------------------------------------------------------------

    async def insert_circular_if_new(
        self,
        source: CircularSource,
        title: str,
        url: str,
        published_date: date | None,
    ) -> bool:
        """
        Insert a scraped circular unless its URL is already stored.

        Returns:
            True if a new row was created, False if the URL already existed
        """
        stmt = (
            self._insert(CircularModel)
            .values(
                id=uuid.uuid4(),
                source=source,
                title=title,
                url=url,
                published_date=published_date,
                status=CircularStatus.SCRAPED,
            )
            .on_conflict_do_nothing(index_elements=["url"])
            .returning(CircularModel.id)
        )
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def get_circular(self, circular_id: uuid.UUID) -> CircularModel | None:
        async with postgres_session(self._session_factory) as session:
            return await session.get(CircularModel, circular_id)

    async def list_circulars_by_status(
        self,
        status: CircularStatus,
        limit: int,
    ) -> Sequence[CircularModel]:
        """Oldest-first batch of circulars in ``status``."""
        stmt = (
            select(CircularModel)
            .where(CircularModel.status == status)
            .order_by(CircularModel.created_at)
            .limit(limit)
        )
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalars().all()

    async def update_circular(self, circular_id: uuid.UUID, **values: Any) -> None:
        """Apply column updates to one circular."""
        stmt = update(CircularModel).where(CircularModel.id == circular_id).values(**values)
        async with postgres_session(self._session_factory) as session:
            await session.execute(stmt)

    async def set_circular_status(self, circular_id: uuid.UUID, status: CircularStatus) -> None:
        await self.update_circular(circular_id, status=status)

    # -------------------------------------------------------------------------
    # Impact
    # -------------------------------------------------------------------------

    async def add_impact(self, impact: CircularImpactModel) -> CircularImpactModel:
        async with postgres_session(self._session_factory) as session:
            session.add(impact)
        return impact

    async def list_impacts(self, circular_id: uuid.UUID) -> Sequence[CircularImpactModel]:
        stmt = (
            select(CircularImpactModel)
            .where(CircularImpactModel.circular_id == circular_id)
            .order_by(CircularImpactModel.created_at)
        )
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalars().all()

    # -------------------------------------------------------------------------
    # Clients, tasks, notifications
    # -------------------------------------------------------------------------

    async def list_clients(self) -> Sequence[ClientModel]:
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(select(ClientModel).order_by(ClientModel.created_at))
            return result.scalars().all()

    async def find_task(
        self,
        client_id: uuid.UUID,
        circular_id: uuid.UUID,
    ) -> ComplianceTaskModel | None:
        stmt = select(ComplianceTaskModel).where(
            ComplianceTaskModel.client_id == client_id,
            ComplianceTaskModel.circular_id == circular_id,
        )
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(stmt)
            return result.scalars().first()

    async def add_task(self, task: ComplianceTaskModel) -> ComplianceTaskModel:
        async with postgres_session(self._session_factory) as session:
            session.add(task)
        return task

    async def list_firm_profile_ids(self, firm_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = select(ProfileModel.id).where(ProfileModel.firm_id == firm_id)
        async with postgres_session(self._session_factory) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def add_notification(self, notification: NotificationModel) -> NotificationModel:
        async with postgres_session(self._session_factory) as session:
            session.add(notification)
        return notification

    # -------------------------------------------------------------------------
    # Scrape log
    # -------------------------------------------------------------------------

    async def append_scrape_log(
        self,
        source: str,
        status: str,
        message: str,
        items_found: int,
    ) -> None:
        async with postgres_session(self._session_factory) as session:
            session.add(
                ScrapeLogModel(
                    source=source,
                    status=status,
                    message=message,
                    items_found=items_found,
                )
            )


_store: ComplianceStore | None = None


def get_store() -> ComplianceStore:
    """Store bound to the configured PostgreSQL engine."""
    global _store
    if _store is None:
        _store = ComplianceStore(PostgresClient.get_engine())
    return _store


def reset_store() -> None:
    global _store
    _store = None
