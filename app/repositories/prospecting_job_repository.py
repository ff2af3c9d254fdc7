"""
Repository for ProspectingJob database operations.

Status changes are conditional updates so a job can never leave a terminal
state, even when two writers race on the same row.
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.prospecting_job import ProspectingJob, JobStatus
from app.utils.time import utc_now


class ProspectingJobRepository:
    """Repository for ProspectingJob operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, url: str, webhook_url: Optional[str] = None) -> ProspectingJob:
        """Create a new job in queued state."""
        now = utc_now()
        job = ProspectingJob(
            url=url,
            webhook_url=webhook_url,
            status=JobStatus.QUEUED,
            created_at=now,
            updated_at=now,
        )
        self.db.add(job)
        await self.db.flush()
        await self.db.refresh(job)
        return job

    async def get_by_id(self, job_id: UUID) -> Optional[ProspectingJob]:
        """Get a job by ID, always reloading its current row state."""
        result = await self.db.execute(
            select(ProspectingJob)
            .where(ProspectingJob.id == job_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_next_queued_id(self) -> Optional[UUID]:
        """Oldest queued job; SKIP LOCKED keeps concurrent pollers apart on PostgreSQL."""
        result = await self.db.execute(
            select(ProspectingJob.id)
            .where(ProspectingJob.status == JobStatus.QUEUED)
            .order_by(ProspectingJob.created_at.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        return result.scalar_one_or_none()

    async def transition(
        self,
        job_id: UUID,
        from_statuses: Iterable[str],
        to_status: str,
        **values,
    ) -> Optional[ProspectingJob]:
        """
        Move a job to `to_status` if it is currently in one of `from_statuses`.

        Returns the refreshed job, or None when the job does not exist or is
        in a state that does not allow the transition.
        """
        stmt = (
            update(ProspectingJob)
            .where(
                ProspectingJob.id == job_id,
                ProspectingJob.status.in_(list(from_statuses)),
            )
            .values(status=to_status, updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.flush()
        if not result.rowcount:
            return None
        return await self.get_by_id(job_id)

    async def count_created_since(self, since: datetime) -> int:
        """Number of jobs submitted at or after `since`."""
        result = await self.db.execute(
            select(func.count(ProspectingJob.id)).where(ProspectingJob.created_at >= since)
        )
        return int(result.scalar_one() or 0)
