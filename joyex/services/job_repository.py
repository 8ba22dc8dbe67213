"""
Job history persistence.

Owner-scoped storage for job records on top of an async SQLAlchemy session.
Listing and deletion are best-effort: database errors there are logged and
degrade to empty results. Saving propagates errors so no half-written job is
ever reported as a success.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from joyex.database.models import Job
from joyex.schemas.jobs import JobCreate

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class JobRepository:
    """Job history backed by the `jobs` table"""

    def __init__(self, session: AsyncSession, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.session = session
        self.history_limit = history_limit

    async def save(self, job_data: JobCreate) -> Job:
        """Insert a job, then keep only the user's most recent `history_limit` entries"""
        job = Job(
            id=str(uuid.uuid4()),
            user_id=job_data.user_id,
            mode=job_data.mode,
            prompt=job_data.prompt,
            images=list(job_data.images),
            output_url=job_data.output_url,
            meta=job_data.meta,
            created_at=datetime.utcnow(),
        )

        try:
            self.session.add(job)
            await self.session.flush()
            await self._prune_history(job.user_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Saved job {job.id} for user {job.user_id} (mode={job.mode.value})")
        return job

    async def _prune_history(self, user_id: str):
        if not self.history_limit or self.history_limit <= 0:
            return

        stale_ids = (
            select(Job.id)
            .where(Job.user_id == user_id)
            .order_by(Job.created_at.desc())
            .offset(self.history_limit)
        )
        result = await self.session.execute(stale_ids)
        ids = [row[0] for row in result.all()]
        if ids:
            await self.session.execute(delete(Job).where(Job.id.in_(ids)))
            logger.debug(f"Pruned {len(ids)} old jobs for user {user_id}")

    async def get(self, job_id: str, user_id: str) -> Optional[Job]:
        query = select(Job).where(Job.id == job_id, Job.user_id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Job]:
        """Most recent first; errors degrade to an empty list"""
        query = select(Job).where(Job.user_id == user_id).order_by(Job.created_at.desc())
        if limit:
            query = query.limit(limit)

        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning(f"Failed to list jobs for user {user_id}: {e}")
            return []

    async def delete_by_id_and_user(self, job_id: str, user_id: str) -> None:
        """Owner-scoped delete; missing jobs are a no-op"""
        try:
            await self.session.execute(delete(Job).where(Job.id == job_id, Job.user_id == user_id))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.warning(f"Failed to delete job {job_id} for user {user_id}: {e}")
            return

        logger.info(f"Deleted job {job_id} for user {user_id}")

    async def update_meta(self, job_id: str, user_id: str, meta: Dict[str, Any]) -> Optional[Job]:
        """
        Shallow-merge `meta` into the stored job metadata.

        The version column makes concurrent writers fail with StaleDataError
        instead of silently overwriting each other.
        """
        job = await self.get(job_id, user_id)
        if job is None:
            return None

        job.meta = {**(job.meta or {}), **meta}

        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.session.refresh(job)
        logger.debug(f"Updated meta for job {job_id} (keys: {list(meta.keys())})")
        return job
