"""
FastAPI dependencies.

Long-lived clients are created once in the application lifespan and stored on
`app.state`; these helpers hand them to the routes that need them.
"""
from typing import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from joyex.core.config import Settings
from joyex.services.fal_client import FalClient
from joyex.services.job_orchestrator import JobOrchestrator
from joyex.services.job_repository import JobRepository
from joyex.services.quality_monitor import QualityMonitor
from joyex.services.upload_service import UploadService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency for database sessions"""
    async with request.app.state.database.session() as session:
        yield session


def get_fal_client(request: Request) -> FalClient:
    return request.app.state.fal_client


def get_quality_monitor(request: Request) -> QualityMonitor:
    return request.app.state.quality_monitor


def get_upload_service(request: Request) -> UploadService:
    return request.app.state.upload_service


def get_job_repository(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JobRepository:
    return JobRepository(db, history_limit=settings.history_limit)


def get_job_orchestrator(
    repository: JobRepository = Depends(get_job_repository),
    fal_client: FalClient = Depends(get_fal_client),
    quality_monitor: QualityMonitor = Depends(get_quality_monitor),
    settings: Settings = Depends(get_settings),
) -> JobOrchestrator:
    return JobOrchestrator(fal_client, repository, settings, quality_monitor=quality_monitor)
