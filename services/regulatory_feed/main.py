"""
Regulatory Feed Service - Main Application
==========================================

FastAPI application for regulatory circular ingestion, impact extraction
and client task mapping.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.regulatory_feed.errors import PipelineError
from services.regulatory_feed.routes import pipeline
from services.regulatory_feed.store import reset_store
from shared.config import settings
from shared.database.postgres import PostgresClient
from shared.llm import get_llm_provider
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="regulatory-feed",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "regulatory_feed_starting",
        environment=settings.environment.value,
        port=settings.port,
    )

    # Startup
    try:
        PostgresClient.get_engine()
        if settings.is_development:
            await PostgresClient.create_tables()
        logger.info("postgres_connected")

    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("regulatory_feed_shutting_down")
    reset_store()
    await PostgresClient.close()


# Create FastAPI application
app = FastAPI(
    title="Regulatory Feed Service",
    description="Regulatory circular ingestion and compliance impact mapping",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


async def _llm_health() -> dict[str, Any]:
    try:
        provider = get_llm_provider()
    except ValueError as e:
        return {"status": "unhealthy", "error": str(e)}
    return await provider.health_check()


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    components: dict[str, dict[str, Any]] = {
        "postgres": await PostgresClient.health_check(),
        "llm": await _llm_health(),
    }

    all_healthy = all(c.get("status") == "healthy" for c in components.values())

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="regulatory-feed",
        version="0.1.0",
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Regulatory Feed Service",
        "version": "0.1.0",
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    pipeline.router,
    prefix="/api/v1/pipeline",
    tags=["Pipeline"],
)


# ============================================================================
# Error Handlers
# ============================================================================


def _error_response(status_code: int, error: str) -> JSONResponse:
    body = ErrorResponse(error=error, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.exception_handler(PipelineError)
async def pipeline_exception_handler(request: Any, exc: PipelineError) -> Any:
    """Handle pipeline failures, including unknown circulars."""
    logger.warning(
        "pipeline_exception",
        status_code=exc.status_code,
        error=exc.message,
        stage=exc.stage,
        path=request.url.path,
    )
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Any, exc: HTTPException) -> Any:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Any, exc: RequestValidationError) -> Any:
    """Render malformed request bodies as the uniform error response."""
    error = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    logger.warning("request_validation_failed", error=error, path=request.url.path)
    return _error_response(422, error)


@app.exception_handler(Exception)
async def general_exception_handler(request: Any, exc: Exception) -> Any:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.regulatory_feed.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
