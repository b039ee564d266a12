"""
Tests for Pipeline Routes
=========================

Version: 0.1.0
"""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from services.regulatory_feed.models import CircularModel
from services.regulatory_feed.orchestrator import PipelineOrchestrator
from tests.fakes import FakeLLMProvider


class TestRoot:
    """Tests for service metadata endpoints."""

    @pytest.mark.asyncio
    async def test_root(self, regulatory_feed_client: AsyncClient) -> None:
        response = await regulatory_feed_client.get("/")

        assert response.status_code == 200
        assert response.json()["service"] == "Regulatory Feed Service"


class TestScrapeRoute:
    """Tests for POST /api/v1/pipeline/scrape."""

    @pytest.mark.asyncio
    async def test_scrape(self, regulatory_feed_client: AsyncClient) -> None:
        response = await regulatory_feed_client.post("/api/v1/pipeline/scrape")

        assert response.status_code == 200
        assert response.json() == {"success": True, "scraped": 0, "sources": {}}


class TestProcessRoute:
    """Tests for POST /api/v1/pipeline/process."""

    @pytest.mark.asyncio
    async def test_batch_without_body(
        self,
        regulatory_feed_client: AsyncClient,
        scraped_circular: CircularModel,
    ) -> None:
        response = await regulatory_feed_client.post("/api/v1/pipeline/process")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["results"][0]["circular_id"] == str(scraped_circular.id)
        assert body["results"][0]["status"] == "processed"
        assert "error" not in body["results"][0]

    @pytest.mark.asyncio
    async def test_failed_result_carries_error(
        self,
        regulatory_feed_client: AsyncClient,
        fake_provider: FakeLLMProvider,
        scraped_circular: CircularModel,
    ) -> None:
        from shared.llm import LLMRateLimitError

        fake_provider.script = [LLMRateLimitError("LLM rate limited: slow down", 429)]

        response = await regulatory_feed_client.post(
            "/api/v1/pipeline/process",
            json={"circular_id": str(scraped_circular.id)},
        )

        result = response.json()["results"][0]
        assert result["status"] == "failed"
        assert result["error"] == "LLM rate limited: slow down"

    @pytest.mark.asyncio
    async def test_unknown_circular(self, regulatory_feed_client: AsyncClient) -> None:
        response = await regulatory_feed_client.post(
            "/api/v1/pipeline/process",
            json={"circular_id": str(uuid.uuid4())},
        )

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert "not found" in body["error"]


class TestMapRoute:
    """Tests for POST /api/v1/pipeline/map-impact."""

    @pytest.mark.asyncio
    async def test_no_impacts(
        self,
        regulatory_feed_client: AsyncClient,
        scraped_circular: CircularModel,
    ) -> None:
        response = await regulatory_feed_client.post(
            "/api/v1/pipeline/map-impact",
            json={"circular_id": str(scraped_circular.id)},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["tasks_created"] == 0
        assert body["message"] == "No impacts to map"

    @pytest.mark.asyncio
    async def test_circular_id_required(self, regulatory_feed_client: AsyncClient) -> None:
        response = await regulatory_feed_client.post("/api/v1/pipeline/map-impact", json={})

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["status_code"] == 422
        assert "circular_id" in body["error"]

    @pytest.mark.asyncio
    async def test_malformed_circular_id(self, regulatory_feed_client: AsyncClient) -> None:
        response = await regulatory_feed_client.post(
            "/api/v1/pipeline/process",
            json={"circular_id": "not-a-uuid"},
        )

        assert response.status_code == 422
        assert "detail" not in response.json()


class TestRunRoute:
    """Tests for POST /api/v1/pipeline/run."""

    @pytest.mark.asyncio
    async def test_run(
        self,
        regulatory_feed_client: AsyncClient,
        scraped_circular: CircularModel,
    ) -> None:
        response = await regulatory_feed_client.post("/api/v1/pipeline/run")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert set(body) >= {"scrape", "process", "impact_mapping"}
        assert body["impact_mapping"][0]["circular_id"] == str(scraped_circular.id)

    @pytest.mark.asyncio
    async def test_pipeline_error_is_500(self, regulatory_feed_client: AsyncClient) -> None:
        from services.regulatory_feed.errors import PipelineError

        with patch.object(
            PipelineOrchestrator,
            "run",
            AsyncMock(side_effect=PipelineError("database unavailable", stage="process")),
        ):
            response = await regulatory_feed_client.post("/api/v1/pipeline/run")

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "database unavailable"
        assert body["status_code"] == 500

    @pytest.mark.asyncio
    async def test_unexpected_error_message_passed_through(
        self,
        regulatory_feed_client: AsyncClient,
    ) -> None:
        from services.regulatory_feed.main import app

        # The catch-all handler answers, then Starlette re-raises to the server
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            with patch.object(
                PipelineOrchestrator,
                "run",
                AsyncMock(side_effect=RuntimeError("connection pool exhausted")),
            ):
                response = await client.post("/api/v1/pipeline/run")

        assert response.status_code == 500
        assert response.json()["error"] == "connection pool exhausted"
