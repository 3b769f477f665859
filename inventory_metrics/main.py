"""
FastAPI Application

Main entry point for the Inventory Metrics API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from inventory_metrics.config import Settings, get_settings
from inventory_metrics.config.logging import configure_logging
from inventory_metrics.serving.api.dependencies import compute_report
from inventory_metrics.serving.api.middleware import RequestLoggingMiddleware
from inventory_metrics.serving.api.routes import health_router, views_router

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, compute_on_startup: bool = True) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings, defaults to the cached settings
        compute_on_startup: Compute the report from the configured sources
            when the application starts
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(settings=settings)
        logger.info("Starting Inventory Metrics API", environment=settings.app_env)

        if compute_on_startup:
            try:
                app.state.report = await run_in_threadpool(compute_report, settings)
            except Exception as e:
                logger.warning(f"Initial report computation failed: {e}")

        yield

        logger.info("Shutting down...")

    app = FastAPI(
        title="Inventory Metrics API",
        description="Inventory health, replenishment and risk metrics for retail store networks",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.report = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, tags=["Health"])
    app.include_router(views_router, prefix="/api/v1/views", tags=["Views"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Inventory Metrics API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=get_settings().api_host, port=get_settings().api_port)
