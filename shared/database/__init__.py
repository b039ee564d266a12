"""
Database Module
===============

Async SQLAlchemy access to the relational store.

Usage:
    from shared.database import postgres_session

    async with postgres_session() as session:
        result = await session.execute(select(ClientModel))
"""

from shared.database.postgres import (
    Base,
    PostgresClient,
    create_session_factory,
    postgres_session,
)


__all__ = [
    "Base",
    "PostgresClient",
    "create_session_factory",
    "postgres_session",
]
