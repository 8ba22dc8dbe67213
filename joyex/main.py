"""
FastAPI main application for Joyex Studio
"""
import logging
import re
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from joyex import __version__
from joyex.core.config import Settings
from joyex.core.config import settings as default_settings
from joyex.core.database import Database
from joyex.core.logging import setup_logging
from joyex.middleware.logging_middleware import RequestLoggingMiddleware
from joyex.routers import jobs, presets, quality, uploads
from joyex.services.accuracy_config import get_accuracy_config
from joyex.services.fal_client import FalClient
from joyex.services.quality_monitor import QualityMonitor
from joyex.services.upload_service import UploadService

logger = logging.getLogger(__name__)


def _log_environment(settings: Settings):
    logger.info("=" * 60)
    logger.info("ENVIRONMENT CHECK")
    logger.info("=" * 60)

    if settings.fal_key:
        key = settings.fal_key
        key_preview = f"{key[:7]}...{key[-4:]}" if len(key) > 11 else "***"
        logger.info(f"FAL_KEY is set: {key_preview}")
    elif settings.fal_demo_mode:
        logger.warning("FAL_KEY is NOT set - demo mode is on, generation will be simulated")
    else:
        logger.error("FAL_KEY is NOT set and demo mode is off - generation requests will fail!")

    sanitized = re.sub(r":\/\/[^:]*:[^@]*@", "://***:***@", settings.database_url)
    logger.info(f"DATABASE_URL: {sanitized}")
    logger.info("=" * 60)


def _generation_mode(fal_client: FalClient) -> str:
    if fal_client.has_credential:
        return "live"
    return "demo" if fal_client.demo_mode else "unconfigured"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its long-lived clients"""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        setup_logging(settings)
        logger.info("Starting Joyex Studio API...")
        _log_environment(settings)

        await app.state.database.create_tables()
        logger.info("Application started")

        yield

        logger.info("Shutting down Joyex Studio API...")
        await app.state.fal_client.close()
        await app.state.database.dispose()
        logger.info("Application stopped")

    app = FastAPI(
        title=settings.app_name,
        description="AI image edit and product replace API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.environment == "development" else None,
        redoc_url="/redoc" if settings.environment == "development" else None,
    )

    quality_monitor = QualityMonitor(max_metrics=settings.quality_max_metrics)
    app.state.settings = settings
    app.state.database = Database(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.fal_client = FalClient(settings)
    app.state.quality_monitor = quality_monitor
    app.state.upload_service = UploadService(
        settings.upload_path,
        public_prefix=settings.upload_url_prefix,
        max_file_size=settings.max_file_size,
        allowed_types=settings.allowed_image_types,
        quality_monitor=quality_monitor,
        processing_policy=get_accuracy_config(settings.accuracy_preset).image_processing,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for load balancers"""
        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": __version__,
            "generation_mode": _generation_mode(app.state.fal_client),
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information"""
        return {
            "name": settings.app_name,
            "version": __version__,
            "docs": "/docs" if settings.environment == "development" else None,
            "endpoints": {
                "jobs": "/api/jobs",
                "upload": "/api/upload",
                "presets": "/api/accuracy-presets",
                "quality": "/api/quality",
            },
        }

    app.include_router(jobs.router, prefix="/api")
    app.include_router(uploads.router, prefix="/api")
    app.include_router(presets.router, prefix="/api")
    app.include_router(quality.router, prefix="/api")

    upload_dir = Path(settings.upload_path)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(settings.upload_url_prefix, StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "joyex.main:app",
        host="0.0.0.0",
        port=8000,
        reload=default_settings.environment == "development",
        log_level=default_settings.log_level.lower(),
    )
