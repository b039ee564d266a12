"""
Test Configuration
==================

Pytest fixtures for regulatory feed tests.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["LLM_PROVIDER"] = "claude"
os.environ["ANTHROPIC_API_KEY"] = "test-key"
os.environ["SCRAPER_RETRY_DELAY_SECONDS"] = "0"
os.environ["EXTRACTION_RETRY_WAIT_SECONDS"] = "0"

from services.regulatory_feed.models import CircularModel, CircularSource, CircularStatus  # noqa: E402
from services.regulatory_feed.store import ComplianceStore  # noqa: E402
from shared.database.postgres import Base, create_session_factory  # noqa: E402
from tests.fakes import FakeLLMProvider, extraction_payload  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """SQLite engine with every table created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'regulatory_feed.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory for arranging rows directly."""
    return create_session_factory(engine)


@pytest.fixture
def store(engine: AsyncEngine) -> ComplianceStore:
    """Store over the test database."""
    return ComplianceStore(engine)


@pytest.fixture
def fake_provider() -> FakeLLMProvider:
    """Provider answering every call with a valid low-risk extraction."""
    return FakeLLMProvider([extraction_payload()])


@pytest_asyncio.fixture
async def scraped_circular(
    session_factory: async_sessionmaker[AsyncSession],
) -> CircularModel:
    """One circular waiting for extraction."""
    circular = CircularModel(
        id=uuid.uuid4(),
        source=CircularSource.RBI,
        title="Master Direction on Know Your Customer (Amendment)",
        url=f"https://www.rbi.org.in/Scripts/NotificationUser.aspx?Id={uuid.uuid4().hex[:6]}",
        status=CircularStatus.SCRAPED,
    )
    async with session_factory() as session:
        session.add(circular)
        await session.commit()
    return circular


@pytest_asyncio.fixture
async def regulatory_feed_client(
    store: ComplianceStore,
    fake_provider: FakeLLMProvider,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Regulatory Feed Service."""
    from services.regulatory_feed.main import app
    from services.regulatory_feed.routes.pipeline import get_scrapers
    from services.regulatory_feed.store import get_store
    from shared.llm import get_llm_provider

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_llm_provider] = lambda: fake_provider
    app.dependency_overrides[get_scrapers] = lambda: []

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
