"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from assistant_metrics.config import get_settings
from assistant_metrics.core.rate_limiter import limiter
from assistant_metrics.features.metrics.router import router as metrics_router
from assistant_metrics.features.metrics.scheduler import MetricsScheduler
from assistant_metrics.features.metrics.service import get_metrics_service
from assistant_metrics.utils.log import configure_logging

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Assistant Metrics in {settings.app_env} mode")

    scheduler = None
    if settings.metrics_scheduler_enabled:
        service = get_metrics_service()
        scheduler = MetricsScheduler(
            job=service.update_system_metrics,
            interval_seconds=settings.metrics_update_interval_hours * 3600,
            initial_delay_seconds=settings.metrics_initial_delay_seconds,
        )
        scheduler.start()
    app.state.metrics_scheduler = scheduler

    yield

    # Shutdown
    if scheduler is not None:
        await scheduler.stop()
    logger.info("Shutting down Assistant Metrics")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Assistant Metrics",
        description="Conversation metrics for the assistants dashboard",
        version=VERSION,
        lifespan=lifespan,
        docs_url="/docs" if settings.app_debug else None,
        redoc_url="/redoc" if settings.app_debug else None,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(metrics_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": VERSION}

    # API info endpoint
    @app.get("/")
    async def root():
        return {
            "name": "Assistant Metrics",
            "version": VERSION,
            "docs": "/docs" if settings.app_debug else None,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "assistant_metrics.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
    )
