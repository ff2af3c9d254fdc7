"""
Prospecting job store.

State machine: queued -> processing -> complete | failed.
Terminal states are never left; every transition refreshes updated_at.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.prospecting_job import ProspectingJob, JobStatus
from app.repositories.prospecting_job_repository import ProspectingJobRepository
from app.schemas.prospecting import JobStatusResponse, ProspectingResult
from app.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again in a few minutes."
MISSING_URL_MESSAGE = "Job document is missing the required URL field."


def parse_job_id(raw_job_id: str) -> Optional[UUID]:
    """Return a UUID for a client-supplied job id, or None when malformed."""
    try:
        return UUID(str(raw_job_id).strip())
    except (TypeError, ValueError):
        return None


class ProspectingJobService:
    """Submission, claiming, transitions and status reads for prospecting jobs."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = ProspectingJobRepository(db)

    async def submit(self, url: str, webhook_url: Optional[str] = None) -> ProspectingJob:
        job = await self.repo.create(url, webhook_url=webhook_url)
        logger.info("Prospecting job created with ID: %s", job.id)
        return job

    async def get_job(self, job_id: UUID) -> Optional[ProspectingJob]:
        return await self.repo.get_by_id(job_id)

    # ====================================================================
    # Transitions
    # ====================================================================

    async def claim_job(self, job_id: UUID, worker_id: str) -> Optional[ProspectingJob]:
        """queued -> processing; None when the job is gone or already claimed."""
        job = await self.repo.transition(
            job_id,
            [JobStatus.QUEUED],
            JobStatus.PROCESSING,
            worker_id=worker_id,
            claimed_at=utc_now(),
        )
        if job:
            logger.info("Job %s claimed by %s", job_id, worker_id)
        return job

    async def claim_next_job(self, worker_id: str) -> Optional[ProspectingJob]:
        job_id = await self.repo.get_next_queued_id()
        if job_id is None:
            return None
        return await self.claim_job(job_id, worker_id)

    async def mark_complete(self, job_id: UUID, result: dict[str, Any]) -> Optional[ProspectingJob]:
        """processing -> complete with the result attached."""
        job = await self.repo.transition(
            job_id,
            [JobStatus.PROCESSING],
            JobStatus.COMPLETE,
            result=result,
            error=None,
        )
        if job:
            logger.info("Prospecting job %s completed successfully", job_id)
        else:
            logger.warning("Job %s was not processing; complete transition ignored", job_id)
        return job

    async def mark_failed(self, job_id: UUID, error: str) -> Optional[ProspectingJob]:
        """queued|processing -> failed with a human-readable error."""
        job = await self.repo.transition(
            job_id,
            [JobStatus.QUEUED, JobStatus.PROCESSING],
            JobStatus.FAILED,
            error=error,
            result=None,
        )
        if job:
            logger.error("Prospecting job %s failed: %s", job_id, error)
        else:
            logger.warning("Job %s already terminal; failed transition ignored", job_id)
        return job

    # ====================================================================
    # Guards
    # ====================================================================

    async def is_rate_limited(self) -> bool:
        """True when more jobs were submitted in the window than allowed."""
        max_jobs = settings.PROSPECTING_RATE_LIMIT_MAX_JOBS
        if max_jobs <= 0:
            return False
        since = utc_now() - timedelta(seconds=settings.PROSPECTING_RATE_LIMIT_WINDOW_SECONDS)
        recent = await self.repo.count_created_since(since)
        return recent > max_jobs

    # ====================================================================
    # Reads
    # ====================================================================

    @staticmethod
    def build_status(job: ProspectingJob) -> JobStatusResponse:
        """Status view; result only once complete, error only once failed."""
        result = None
        error = None
        if job.status == JobStatus.COMPLETE and job.result:
            result = ProspectingResult.model_validate(job.result)
        elif job.status == JobStatus.FAILED:
            error = job.error or "Processing failed"
        return JobStatusResponse(
            status=job.status,
            result=result,
            error=error,
            last_updated=ensure_utc(job.updated_at) or utc_now(),
        )

    async def get_status(self, job_id: UUID) -> Optional[JobStatusResponse]:
        job = await self.repo.get_by_id(job_id)
        if not job:
            return None
        return self.build_status(job)

    @staticmethod
    def webhook_payload(job: ProspectingJob) -> dict[str, Any]:
        payload: dict[str, Any] = {"jobId": str(job.id), "status": job.status}
        if job.status == JobStatus.COMPLETE:
            payload["result"] = job.result
        else:
            payload["error"] = job.error
        return payload
