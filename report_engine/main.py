"""FastAPI application entry point."""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from report_engine.api import router as api_router
from report_engine.core.config import get_settings
from report_engine.core.llm_providers import build_default_providers
from report_engine.core.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    settings = get_settings()
    providers = build_default_providers(settings)
    configured = [provider.name for provider in providers if provider.available()]
    logger.info(
        f"Report Engine starting in {settings.REPORT_ENGINE_ENV} with providers: {configured or 'none'}"
    )
    if not configured:
        logger.warning("No LLM provider credentials configured; sections will stay placeholders")
    yield
    logger.info("Report Engine shutting down")


app = FastAPI(
    title="Report Engine",
    description="Resumable multi-provider personalized report generation service",
    version="0.1.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={"operation": "http_request", "duration_ms": elapsed_ms},
    )
    return response


@app.get("/health")
async def health_check() -> dict:
    """Liveness probe; never touches the store or a provider."""
    return {"status": "ok"}


app.include_router(api_router, prefix="/v1", tags=["v1"])
