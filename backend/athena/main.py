# backend/athena/main.py
"""
FastAPI application for the Athena session engine.

Mounts the v1 session router under /api/v1/sessions and exposes
Prometheus metrics at /internal/metrics.
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response

from .core.config import is_running_tests, settings
from .database import init_db
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import availability as availability_v1
from .routes.v1 import sessions as sessions_v1

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_TITLE = "Athena Sessions API"
API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    logger.info("Athena sessions API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        init_db()
    yield
    logger.info("Athena sessions API shutting down...")


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(sessions_v1.router, prefix="/sessions")
api_v1.include_router(availability_v1.router, prefix="/availability")
app.include_router(api_v1)


@app.get("/health", include_in_schema=False)
def health_check() -> dict:
    return {"status": "ok"}


@app.get("/internal/metrics", include_in_schema=False)
def internal_metrics_endpoint() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={"Cache-Control": "no-store", "Pragma": "no-cache"},
    )
